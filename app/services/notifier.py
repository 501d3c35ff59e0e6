import logging
from typing import Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.models.item import Item
from app.models.notification import Notification, NotificationType
from app.models.user import User

logger = logging.getLogger(__name__)


def resolve_recipient(session: Session, item: Item) -> Optional[User]:
    """Find the account that should hear about ``item``.

    Routing goes by the contact address on the item, falling back to the
    poster's account when the address doesn't belong to anyone.
    """
    if item.contact_email:
        user = session.exec(
            select(User).where(func.lower(User.email) == item.contact_email.strip().lower())
        ).first()
        if user:
            return user

    return session.get(User, item.user_id)


MATCH_INDEX = "uq_match_notification"


def is_duplicate_match(error: IntegrityError) -> bool:
    # postgres names the index, sqlite lists its columns
    message = str(error.orig).lower()
    return MATCH_INDEX in message or (
        "unique constraint failed" in message and "notifications.related_item_id" in message
    )


def insert_if_absent(session: Session, notification: Notification) -> Optional[Notification]:
    """Persist ``notification`` unless the unique index already holds it.

    Returns the stored notification, or None when it was a duplicate. Any
    other integrity failure (e.g. a recipient deleted mid-scan) is raised.
    """
    recipient_id = notification.user_id
    session.add(notification)

    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        if not is_duplicate_match(e):
            logger.warning(f"Notification write for user {recipient_id} failed: {e.orig}")
            raise
        return None

    session.refresh(notification)
    return notification


def notify_match(session: Session, recipient_item: Item, matched_item: Item, percentage: int) -> Optional[Notification]:
    user = resolve_recipient(session, recipient_item)
    if not user:
        logger.warning(f"No account to notify for item {recipient_item.id}")
        return None

    notification = Notification(
        user_id=user.id,
        type=NotificationType.match_found,
        title=f"{percentage}% Match Found!",
        message=(
            f"We found a potential match for your {(recipient_item.category or 'item').lower()}. "
            f"The item \"{matched_item.title}\" matches {percentage}% of your criteria."
        ),
        item_id=recipient_item.id,
        related_item_id=matched_item.id,
    )

    stored = insert_if_absent(session, notification)

    if stored:
        logger.info(f"Match notification created for user {user.id} ({percentage}%)")
    else:
        logger.info(f"Match notification already exists for user {user.id} and item {matched_item.id}")

    return stored


def notify_claim_event(session: Session, user_id: int, title: str, message: str, item: Item, claim_id=None) -> Optional[Notification]:
    """Best-effort claim notification, a failed write is logged and skipped."""
    notification = Notification(
        user_id=user_id,
        type=NotificationType.claim_event,
        title=title,
        message=message,
        item_id=item.id,
        claim_id=claim_id,
    )

    try:
        session.add(notification)
        session.commit()
    except Exception:
        session.rollback()
        logger.exception(f"Failed to notify user {user_id} about claim {claim_id}")
        return None

    session.refresh(notification)
    return notification
