from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from vetclinic.api.v1.routes.deps import get_current_user, get_db, require_role
from vetclinic.core.errors import NotFoundError
from vetclinic.db.models.notification import Notification
from vetclinic.db.models.user import User
from vetclinic.services.appointments import AppointmentService
from vetclinic.services.stats import StatsService

router = APIRouter()


@router.get("/stats")
def dashboard_stats(
    user: User = Depends(require_role("OWNER")),
    db: Session = Depends(get_db),
):
    owner = AppointmentService(db).owner_profile(user)
    return StatsService(db).owner_stats(owner)


@router.get("/analytics")
def dashboard_analytics(
    months: int = Query(default=6, ge=1, le=24),
    user: User = Depends(require_role("OWNER")),
    db: Session = Depends(get_db),
):
    owner = AppointmentService(db).owner_profile(user)
    return StatsService(db).owner_analytics(owner, months=months)


@router.get("/notifications")
def list_notifications(
    unread_only: bool = False,
    limit: int = Query(default=50, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    stmt = select(Notification).where(Notification.user_id == user.user_id)
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))
    rows = db.execute(stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)).scalars().all()
    return [
        {
            "id": n.id,
            "title": n.title,
            "message": n.message,
            "notification_type": n.notification_type,
            "related_appointment_id": n.related_appointment_id,
            "is_read": n.is_read,
            "created_at": n.created_at,
        }
        for n in rows
    ]


@router.post("/notifications/{notification_id}/read")
def mark_notification_read(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notification = db.get(Notification, notification_id)
    # Someone else's notification is reported as missing.
    if not notification or notification.user_id != user.user_id:
        raise NotFoundError("Notification not found")
    notification.is_read = True
    db.commit()
    return {"id": notification.id, "is_read": True}
