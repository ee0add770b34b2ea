"""Module: notifier.

Stores in-app notifications for appointment updates and, when a webhook URL
is configured, forwards them to it. Delivery problems are logged and never
undo the change that triggered the notification.
"""

import logging
import uuid

import httpx
from sqlalchemy.orm import Session

from vetclinic.core.appointment_rules import Action
from vetclinic.core.config import settings
from vetclinic.db.models.appointment import Appointment
from vetclinic.db.models.notification import Notification

logger = logging.getLogger(__name__)

_TITLES = {
    Action.CONFIRM: "Appointment Confirmed",
    Action.DECLINE: "Appointment Declined",
    Action.CANCEL: "Appointment Cancelled",
    Action.START: "Appointment Started",
    Action.COMPLETE: "Appointment Completed",
    Action.MARK_NO_SHOW: "Appointment Missed",
}


def build_message(action: Action, pet_name: str | None, reason: str | None = None) -> str:
    pet = pet_name or "your pet"
    if action == Action.CONFIRM:
        return f"Your appointment for {pet} has been confirmed by the veterinarian."
    if action == Action.DECLINE:
        return f"Your appointment for {pet} has been declined. Reason: {reason}"
    if action == Action.CANCEL:
        message = f"The appointment for {pet} has been cancelled."
        return f"{message} Reason: {reason}" if reason else message
    if action == Action.START:
        return f"The appointment for {pet} is now in progress."
    if action == Action.COMPLETE:
        return f"Your appointment for {pet} has been completed."
    return f"The appointment for {pet} was marked as missed."


class Notifier:
    def __init__(
        self,
        db: Session,
        webhook_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.db = db
        self.webhook_url = webhook_url if webhook_url is not None else settings.notification_webhook_url
        self.timeout = timeout if timeout is not None else settings.notification_timeout_seconds
        self.transport = transport

    def appointment_updated(
        self,
        appointment: Appointment,
        action: Action,
        recipient_user_id: uuid.UUID,
        pet_name: str | None = None,
        reason: str | None = None,
    ) -> Notification:
        """Queue a notification row on the current session; the caller commits."""
        notification = Notification(
            user_id=recipient_user_id,
            title=_TITLES[action],
            message=build_message(action, pet_name, reason),
            notification_type="appointment_update",
            related_appointment_id=appointment.id,
        )
        self.db.add(notification)
        return notification

    def dispatch(self, notification: Notification) -> bool:
        """POST a committed notification to the webhook. Returns True when delivered."""
        if not self.webhook_url:
            return False

        payload = {
            "id": notification.id,
            "user_id": str(notification.user_id),
            "title": notification.title,
            "message": notification.message,
            "notification_type": notification.notification_type,
            "related_appointment_id": notification.related_appointment_id,
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                r = client.post(self.webhook_url, json=payload)
                r.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Notification %s webhook delivery failed: %s", notification.id, exc)
            return False

        logger.info("Notification %s delivered to webhook", notification.id)
        return True
