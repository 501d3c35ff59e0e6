import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session, select

from app.db.db import get_session
from app.models.claim import Claim, ClaimStatus
from app.models.item import Item
from app.models.user import User
from app.services.claims import get_contact_details, load_claim, submit_claim, transition_claim
from app.utils.auth_helper import get_current_user_required, get_db_user
from app.utils.errors import NotAuthorizedError, NotFoundError


router = APIRouter()


class ClaimAnswer(BaseModel):
    question: str = Field(min_length=1, max_length=200)
    answer: str = Field(max_length=500)

class ClaimCreateRequest(BaseModel):
    item_id: uuid.UUID
    answers: List[ClaimAnswer] = Field(default_factory=list, max_length=10)
    message: Optional[str] = Field(default=None, max_length=500)

@router.post("/create")
def create_claim(
    payload: ClaimCreateRequest,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    user = get_db_user(session, current_user)

    item = session.get(Item, payload.item_id)
    if not item:
        raise NotFoundError("Item not found")

    claim = submit_claim(
        session,
        item,
        user,
        [answer.model_dump() for answer in payload.answers],
        message=payload.message,
    )

    return {
        "ok": True,
        "claim_id": str(claim.id),
        "status": claim.status,
    }

@router.get("/status")
def get_claim_status(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    """
    Latest claim on an item that the current user takes part in.
    """
    user = get_db_user(session, current_user)

    claim = session.exec(
        select(Claim)
        .where(Claim.item_id == item_id)
        .where((Claim.claimant_id == user.id) | (Claim.poster_id == user.id))
        .order_by(Claim.created_at.desc())
    ).first()

    if not claim:
        return {"submitted": False}

    return {
        "submitted": True,
        "claim_id": str(claim.id),
        "status": claim.status,
        "approved": claim.status == ClaimStatus.approved,
    }

@router.get("/item/{item_id}")
def get_claims_for_review(
    item_id: uuid.UUID,
    status: Optional[ClaimStatus] = None,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    """
    Review claims on an item - accessible by the poster.
    """
    user = get_db_user(session, current_user)

    item = session.get(Item, item_id)
    if not item:
        raise NotFoundError("Item not found")

    if item.user_id != user.id:
        raise NotAuthorizedError("Not authorized to review claims for this item")

    query = (
        select(Claim, User)
        .join(User, Claim.claimant_id == User.id)
        .where(Claim.item_id == item.id)
        .order_by(Claim.confidence_score.desc(), Claim.created_at)
    )

    if status:
        query = query.where(Claim.status == status)

    claims = []
    for claim, claimant in session.exec(query).all():
        data = claim.model_dump()
        data["claimant"] = {"public_id": claimant.public_id, "name": claimant.name}
        claims.append(data)

    return {
        "item": item.public_dict(),
        "claims": claims,
    }

@router.get("/{claim_id}")
def get_claim(
    claim_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    """
    Get claim by ID - accessible only by its participants.
    """
    user = get_db_user(session, current_user)

    claim, item = load_claim(session, claim_id)

    if user.id not in (claim.poster_id, claim.claimant_id):
        raise NotAuthorizedError("Not authorized to view this claim")

    return {
        "claim": claim,
        "item": item.public_dict(),
    }

class ClaimRejectRequest(BaseModel):
    rejection_reason: Optional[str] = Field(default=None, max_length=280)

def _transition(session: Session, current_user, claim_id: uuid.UUID, target: ClaimStatus, reason: Optional[str] = None):
    user = get_db_user(session, current_user)

    claim, _ = load_claim(session, claim_id)
    claim = transition_claim(session, claim, user, target, reason=reason)

    return {"ok": True, "status": claim.status}

@router.post("/{claim_id}/approve")
def approve_claim(
    claim_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    return _transition(session, current_user, claim_id, ClaimStatus.approved)

@router.post("/{claim_id}/reject")
def reject_claim(
    claim_id: uuid.UUID,
    payload: Optional[ClaimRejectRequest] = None,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    reason = payload.rejection_reason if payload else None
    return _transition(session, current_user, claim_id, ClaimStatus.rejected, reason=reason)

@router.post("/{claim_id}/solve")
def solve_claim(
    claim_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    return _transition(session, current_user, claim_id, ClaimStatus.solved)

@router.get("/{claim_id}/contact")
def get_claim_contact(
    claim_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    user = get_db_user(session, current_user)

    claim, _ = load_claim(session, claim_id)

    return get_contact_details(session, claim, user)
