"""Module: appointment_rules.

Appointment status machine and daily booking capacity guard.

Nothing in here touches the database or the web layer. Services load rows,
ask these functions what is allowed, and persist the answer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from vetclinic.core.errors import InvalidTransitionError, PermissionDeniedError, ValidationError


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class Actor(str, Enum):
    PET_OWNER = "pet_owner"
    VETERINARIAN = "veterinarian"


class Action(str, Enum):
    CONFIRM = "confirm"
    DECLINE = "decline"
    CANCEL = "cancel"
    START = "start"
    COMPLETE = "complete"
    MARK_NO_SHOW = "mark_no_show"


TERMINAL_STATUSES = frozenset(
    {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
)
# Statuses that hold one of the owner's daily booking slots.
ACTIVE_STATUSES = frozenset(
    {AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED, AppointmentStatus.IN_PROGRESS}
)
MAX_DAILY_APPOINTMENTS = 5

_OWNER = frozenset({Actor.PET_OWNER})
_VET = frozenset({Actor.VETERINARIAN})
_EITHER = frozenset({Actor.PET_OWNER, Actor.VETERINARIAN})


@dataclass(frozen=True)
class Transition:
    target: AppointmentStatus
    actors: frozenset
    requires_reason: bool = False


# (current status, action) -> allowed transition.
TRANSITIONS: dict[tuple[AppointmentStatus, Action], Transition] = {
    (AppointmentStatus.PENDING, Action.CONFIRM): Transition(AppointmentStatus.CONFIRMED, _VET),
    (AppointmentStatus.PENDING, Action.DECLINE): Transition(
        AppointmentStatus.CANCELLED, _VET, requires_reason=True
    ),
    (AppointmentStatus.PENDING, Action.CANCEL): Transition(AppointmentStatus.CANCELLED, _OWNER),
    (AppointmentStatus.PENDING, Action.MARK_NO_SHOW): Transition(AppointmentStatus.NO_SHOW, _VET),
    (AppointmentStatus.CONFIRMED, Action.CANCEL): Transition(AppointmentStatus.CANCELLED, _EITHER),
    (AppointmentStatus.CONFIRMED, Action.START): Transition(AppointmentStatus.IN_PROGRESS, _VET),
    (AppointmentStatus.CONFIRMED, Action.COMPLETE): Transition(AppointmentStatus.COMPLETED, _VET),
    (AppointmentStatus.CONFIRMED, Action.MARK_NO_SHOW): Transition(AppointmentStatus.NO_SHOW, _VET),
    (AppointmentStatus.IN_PROGRESS, Action.COMPLETE): Transition(AppointmentStatus.COMPLETED, _VET),
}

# Status each action lands on, used for error messages.
ACTION_TARGETS = {
    Action.CONFIRM: AppointmentStatus.CONFIRMED,
    Action.DECLINE: AppointmentStatus.CANCELLED,
    Action.CANCEL: AppointmentStatus.CANCELLED,
    Action.START: AppointmentStatus.IN_PROGRESS,
    Action.COMPLETE: AppointmentStatus.COMPLETED,
    Action.MARK_NO_SHOW: AppointmentStatus.NO_SHOW,
}

_TARGET_ACTIONS = {
    AppointmentStatus.CONFIRMED: Action.CONFIRM,
    AppointmentStatus.IN_PROGRESS: Action.START,
    AppointmentStatus.COMPLETED: Action.COMPLETE,
    AppointmentStatus.NO_SHOW: Action.MARK_NO_SHOW,
}


def parse_status(value: str | AppointmentStatus) -> AppointmentStatus:
    if isinstance(value, AppointmentStatus):
        return value
    try:
        return AppointmentStatus((value or "").strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid status value '{value}'")


def allowed_actions(current: str | AppointmentStatus, actor: Actor) -> list[Action]:
    """Actions ``actor`` may take on an appointment in ``current`` status."""
    status = parse_status(current)
    return [
        action
        for (from_status, action), rule in TRANSITIONS.items()
        if from_status == status and actor in rule.actors
    ]


def next_state(
    current: str | AppointmentStatus,
    action: Action,
    actor: Actor,
    reason: str | None = None,
) -> AppointmentStatus:
    """
    Return the status an appointment moves to when ``actor`` performs ``action``.

    Raises InvalidTransitionError when the action is not defined from the
    current status (always the case for terminal statuses),
    PermissionDeniedError when the transition exists but belongs to the other
    party, and ValidationError when a required reason is blank.
    """
    status = parse_status(current)

    if status in TERMINAL_STATUSES:
        raise InvalidTransitionError(status.value, ACTION_TARGETS[action].value)

    rule = TRANSITIONS.get((status, action))
    if rule is None:
        raise InvalidTransitionError(status.value, ACTION_TARGETS[action].value)

    if actor not in rule.actors:
        raise PermissionDeniedError(
            f"A {actor.value.replace('_', ' ')} cannot {action.value.replace('_', ' ')} "
            f"a {status.value} appointment"
        )

    if rule.requires_reason and not (reason or "").strip():
        raise ValidationError("A reason is required to decline an appointment")

    return rule.target


def resolve_action(
    current: str | AppointmentStatus,
    target: str | AppointmentStatus,
    actor: Actor,
) -> Action:
    """Map a requested target status onto the action that reaches it."""
    status = parse_status(current)
    wanted = parse_status(target)

    if wanted == AppointmentStatus.CANCELLED:
        # A vet cancelling a request that was never approved is declining it.
        if actor == Actor.VETERINARIAN and status == AppointmentStatus.PENDING:
            return Action.DECLINE
        return Action.CANCEL

    action = _TARGET_ACTIONS.get(wanted)
    if action is None:
        raise InvalidTransitionError(status.value, wanted.value)
    return action


# -------------------------
# Daily capacity guard
# -------------------------

@dataclass(frozen=True)
class DailyCapacity:
    count: int
    limit: int = MAX_DAILY_APPOINTMENTS

    @property
    def limit_reached(self) -> bool:
        return self.count >= self.limit

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)

    def as_dict(self) -> dict:
        return {
            "count": self.count,
            "limit": self.limit,
            "remaining": self.remaining,
            "limit_reached": self.limit_reached,
        }


def evaluate_daily_capacity(
    statuses: Iterable[str | AppointmentStatus],
    limit: int = MAX_DAILY_APPOINTMENTS,
) -> DailyCapacity:
    """Count the active appointments among ``statuses`` for one owner and day."""
    count = sum(1 for s in statuses if parse_status(s) in ACTIVE_STATUSES)
    return DailyCapacity(count=count, limit=limit)
