"""Status machine and daily capacity rules, exercised without a database."""

import pytest

from vetclinic.core.appointment_rules import (
    Action,
    Actor,
    AppointmentStatus,
    MAX_DAILY_APPOINTMENTS,
    TERMINAL_STATUSES,
    allowed_actions,
    evaluate_daily_capacity,
    next_state,
    parse_status,
    resolve_action,
)
from vetclinic.core.errors import InvalidTransitionError, PermissionDeniedError, ValidationError

OWNER = Actor.PET_OWNER
VET = Actor.VETERINARIAN


def test_vet_confirms_pending_request() -> None:
    assert next_state("pending", Action.CONFIRM, VET) == AppointmentStatus.CONFIRMED


def test_owner_cannot_confirm_own_request() -> None:
    with pytest.raises(PermissionDeniedError):
        next_state("pending", Action.CONFIRM, OWNER)


@pytest.mark.parametrize("reason", [None, "", "   \t"])
def test_decline_requires_non_blank_reason(reason) -> None:
    with pytest.raises(ValidationError):
        next_state("pending", Action.DECLINE, VET, reason)


def test_decline_with_reason_cancels() -> None:
    assert next_state("pending", Action.DECLINE, VET, "Vet on leave") == AppointmentStatus.CANCELLED


@pytest.mark.parametrize("status", sorted(s.value for s in TERMINAL_STATUSES))
@pytest.mark.parametrize("action", list(Action))
@pytest.mark.parametrize("actor", list(Actor))
def test_terminal_statuses_accept_nothing(status, action, actor) -> None:
    with pytest.raises(InvalidTransitionError):
        next_state(status, action, actor, reason="any reason")


def test_completing_twice_is_rejected() -> None:
    status = next_state("confirmed", Action.COMPLETE, VET)
    with pytest.raises(InvalidTransitionError):
        next_state(status, Action.COMPLETE, VET)


@pytest.mark.parametrize(
    "current, actor",
    [("pending", OWNER), ("confirmed", OWNER), ("confirmed", VET)],
)
def test_cancel_paths(current, actor) -> None:
    assert next_state(current, Action.CANCEL, actor) == AppointmentStatus.CANCELLED


def test_vet_cannot_plain_cancel_pending_request() -> None:
    # Vets decline pending requests instead.
    with pytest.raises(PermissionDeniedError):
        next_state("pending", Action.CANCEL, VET)


def test_in_progress_can_only_complete() -> None:
    assert next_state("in_progress", Action.COMPLETE, VET) == AppointmentStatus.COMPLETED
    for action in (Action.CANCEL, Action.MARK_NO_SHOW, Action.START, Action.CONFIRM):
        with pytest.raises(InvalidTransitionError):
            next_state("in_progress", action, VET)


def test_pending_cannot_jump_to_completed() -> None:
    action = resolve_action("pending", "completed", VET)
    with pytest.raises(InvalidTransitionError):
        next_state("pending", action, VET)


def test_start_from_pending_is_not_a_transition() -> None:
    with pytest.raises(InvalidTransitionError):
        next_state("pending", Action.START, VET)


def test_owner_cannot_run_clinical_actions() -> None:
    for action in (Action.START, Action.COMPLETE, Action.MARK_NO_SHOW):
        with pytest.raises(PermissionDeniedError):
            next_state("confirmed", action, OWNER)


def test_no_show_from_pending_and_confirmed() -> None:
    assert next_state("pending", Action.MARK_NO_SHOW, VET) == AppointmentStatus.NO_SHOW
    assert next_state("confirmed", Action.MARK_NO_SHOW, VET) == AppointmentStatus.NO_SHOW


def test_resolve_cancelled_target_depends_on_actor_and_status() -> None:
    assert resolve_action("pending", "cancelled", VET) == Action.DECLINE
    assert resolve_action("confirmed", "cancelled", VET) == Action.CANCEL
    assert resolve_action("pending", "cancelled", OWNER) == Action.CANCEL


def test_resolve_other_targets() -> None:
    assert resolve_action("pending", "confirmed", VET) == Action.CONFIRM
    assert resolve_action("confirmed", "in_progress", VET) == Action.START
    assert resolve_action("in_progress", "completed", VET) == Action.COMPLETE
    assert resolve_action("confirmed", "no_show", VET) == Action.MARK_NO_SHOW


def test_resolve_back_to_pending_is_invalid() -> None:
    with pytest.raises(InvalidTransitionError):
        resolve_action("confirmed", "pending", VET)


def test_unknown_status_is_a_validation_error() -> None:
    with pytest.raises(ValidationError):
        parse_status("archived")


def test_parse_status_ignores_case_and_whitespace() -> None:
    assert parse_status("  Confirmed ") == AppointmentStatus.CONFIRMED


def test_allowed_actions_per_actor() -> None:
    assert allowed_actions("pending", VET) == [Action.CONFIRM, Action.DECLINE, Action.MARK_NO_SHOW]
    assert allowed_actions("pending", OWNER) == [Action.CANCEL]
    assert allowed_actions("confirmed", OWNER) == [Action.CANCEL]
    assert allowed_actions("completed", VET) == []


# -------------------------
# Daily capacity
# -------------------------

def test_capacity_reached_at_five_active() -> None:
    capacity = evaluate_daily_capacity(["pending", "confirmed", "in_progress", "pending", "confirmed"])
    assert capacity.count == MAX_DAILY_APPOINTMENTS
    assert capacity.limit_reached is True
    assert capacity.remaining == 0


def test_inactive_statuses_do_not_count() -> None:
    capacity = evaluate_daily_capacity(
        ["pending", "pending", "confirmed", "confirmed", "cancelled", "completed", "no_show"]
    )
    assert capacity.count == 4
    assert capacity.limit_reached is False
    assert capacity.remaining == 1


def test_cancelled_rows_free_their_slots() -> None:
    capacity = evaluate_daily_capacity(["cancelled", "cancelled", "pending", "pending", "pending"])
    assert capacity.count == 3
    assert capacity.limit_reached is False


def test_empty_day() -> None:
    assert evaluate_daily_capacity([]).as_dict() == {
        "count": 0,
        "limit": MAX_DAILY_APPOINTMENTS,
        "remaining": MAX_DAILY_APPOINTMENTS,
        "limit_reached": False,
    }