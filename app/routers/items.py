import logging
import uuid
from typing import Optional
from fastapi import APIRouter, Body, Depends
from sqlalchemy import func
from sqlmodel import Session, select

from app.db.db import get_session
from app.models.claim import Claim, ClaimStatus
from app.models.item import Item, ItemStatus, ItemType
from app.models.user import User
from app.services.matching import find_matches_and_notify
from app.utils.auth_helper import find_db_user, get_current_user_optional, get_current_user_required, get_db_user
from app.utils.errors import NotAuthorizedError, NotFoundError
from app.utils.form_validator import validate_create_item, validate_item_updates

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/create")
def add_item(
    payload: dict = Body(...),
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    # user lookup
    user = get_db_user(session, current_user)

    data = validate_create_item(payload)

    # create DB item
    db_item = Item(
        user_id=user.id,
        type=ItemType(data.item_type),
        title=data.title,
        description=data.description,
        category=data.category,
        date=data.date,
        city=data.city,
        area=data.area,
        landmark=data.landmark,
        questions=[q.model_dump() for q in data.questions],
        keywords=[k.strip() for k in data.keywords if k.strip()],
        contact_email=data.contact_email or user.email,
        contact_phone=data.contact_phone or user.phone,
    )

    session.add(db_item)
    session.commit()
    session.refresh(db_item)

    # matching must never undo the item that was just saved
    matches = []
    try:
        matches = find_matches_and_notify(session, db_item)
    except Exception:
        session.rollback()
        logger.exception(f"Matching failed for item {db_item.id}")

    return {
        "id": str(db_item.id),
        "matches": len(matches),
    }


@router.get("/all")
def get_all_items(
    type: Optional[ItemType] = None,
    category: Optional[str] = None,
    city: Optional[str] = None,
    area: Optional[str] = None,
    session: Session = Depends(get_session),
):
    query = (
        select(Item)
        .where(Item.status == ItemStatus.active)
        .order_by(Item.created_at.desc())
    )

    if type:
        query = query.where(Item.type == type)

    if category:
        query = query.where(func.lower(Item.category) == category.strip().lower())

    if city:
        query = query.where(func.lower(Item.city) == city.strip().lower())

    if area:
        query = query.where(func.lower(Item.area).contains(area.strip().lower()))

    items = session.exec(query).all()

    return {
        "items": [item.public_dict() for item in items],
    }


@router.get("/{item_id}")
def get_item(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_optional),
):
    query = (
        select(Item, User)
        .join(User, User.id == Item.user_id)
        .where(Item.id == item_id)
    )

    result = session.exec(query).first()
    if not result:
        raise NotFoundError("Item not found")

    item, reporter = result

    # the viewer's own claim on this item, if any
    claim_status = "none"
    viewer = find_db_user(session, current_user)

    if viewer:
        claim = session.exec(
            select(Claim)
            .where(Claim.item_id == item.id)
            .where(Claim.claimant_id == viewer.id)
            .where(Claim.status != ClaimStatus.rejected)  # don't send rejection info
        ).first()

        if claim:
            claim_status = claim.status

    return {
        "item": item.public_dict(),
        "reporter": {
            "public_id": reporter.public_id,
            "name": reporter.name,
            "image": reporter.image,
        },
        "is_owner": bool(viewer and viewer.id == item.user_id),
        "claim_status": claim_status,
    }


@router.patch("/{item_id}")
def update_item(
    item_id: uuid.UUID,
    updates: dict = Body(...),
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    item = session.get(Item, item_id)
    if not item:
        raise NotFoundError("Item not found")

    # ownership check
    user = get_db_user(session, current_user)

    if item.user_id != user.id:
        raise NotAuthorizedError("Unauthorized to edit this item")

    for field, value in validate_item_updates(updates).items():
        setattr(item, field, value)

    session.add(item)
    session.commit()
    session.refresh(item)

    return str(item.id)


@router.delete("/{item_id}")
def delete_item(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    item = session.get(Item, item_id)
    if not item:
        raise NotFoundError("Item not found")

    # ownership check
    user = get_db_user(session, current_user)

    if item.user_id != user.id:
        raise NotAuthorizedError("Unauthorized to delete this item")

    # claims and notifications go with it (ON DELETE CASCADE)
    session.delete(item)
    session.commit()

    return True
