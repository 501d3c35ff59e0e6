import uuid
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy import update
from sqlalchemy.orm import aliased
from sqlmodel import Session, func, select

from app.db.db import get_session
from app.models.item import Item
from app.models.notification import Notification, NotificationType
from app.utils.auth_helper import get_current_user_required, get_db_user
from app.utils.errors import NotFoundError


router = APIRouter()


def unread_for(user_id: int):
    return (Notification.user_id == user_id) & (Notification.is_read == False)


@router.get("/")
def get_my_notifications(
    limit: int = 20,
    unread_only: bool = False,
    type: Optional[NotificationType] = None,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    user = get_db_user(session, current_user)

    query = select(Notification).where(
        unread_for(user.id) if unread_only else Notification.user_id == user.id
    )

    if type:
        query = query.where(Notification.type == type)

    notifications = session.exec(
        query.order_by(Notification.created_at.desc()).limit(limit)
    ).all()

    return {"notifications": notifications}

@router.get("/count")
def get_unread_notifications_count(
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    """
    Unread total, split by notification type.
    """
    user = get_db_user(session, current_user)

    rows = session.exec(
        select(Notification.type, func.count(Notification.id))
        .where(unread_for(user.id))
        .group_by(Notification.type)
    ).all()

    by_type = {NotificationType(kind).value: total for kind, total in rows}

    return {"count": sum(by_type.values()), "by_type": by_type}

@router.get("/matches")
def get_my_matches(
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    """
    Match notifications with the matched item attached.
    """
    user = get_db_user(session, current_user)

    matched = aliased(Item)

    rows = session.exec(
        select(Notification, matched)
        .join(matched, Notification.related_item_id == matched.id)
        .where(Notification.user_id == user.id)
        .where(Notification.type == NotificationType.match_found)
        .order_by(Notification.created_at.desc())
    ).all()

    matches = []
    for notif, item in rows:
        data = notif.model_dump()
        data["related_item"] = item.public_dict()
        matches.append(data)

    return {"matches": matches}

@router.post("/{notification_id}/mark-read")
def mark_notification_read(
    notification_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    user = get_db_user(session, current_user)

    notif = session.get(Notification, notification_id)

    # someone else's notification looks the same as a missing one
    if not notif or notif.user_id != user.id:
        raise NotFoundError("Notification not found")

    if not notif.is_read:
        notif.is_read = True
        session.add(notif)
        session.commit()

    return {"ok": True}

@router.post("/mark-all-read")
def mark_all_notifications_read(
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    user = get_db_user(session, current_user)

    result = session.execute(
        update(Notification)
        .where(unread_for(user.id))
        .values(is_read=True)
    )
    session.commit()

    return {"ok": True, "updated": result.rowcount}
