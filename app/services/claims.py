"""
Claim lifecycle.

    pending -> approved -> solved
    pending -> rejected

The poster and the claimant play different real-world roles depending on
the item's disposition. On a found item the poster is the finder and the
claimant says they own it; on a lost item the poster is the owner and the
claimant says they found it. Either way the poster holds authority over
the claim. ``resolve_roles`` is the only place this is worked out.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import List, NamedTuple, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.models.claim import Claim, ClaimStatus
from app.models.item import Item, ItemStatus, ItemType
from app.models.user import User
from app.services.notifier import notify_claim_event
from app.services.verification import MAX_SCORE, calculate_verification_score
from app.utils.errors import ConflictError, NotAuthorizedError, NotFoundError

logger = logging.getLogger(__name__)

TRANSITIONS = {
    ClaimStatus.pending: {ClaimStatus.approved, ClaimStatus.rejected},
    ClaimStatus.approved: {ClaimStatus.solved},
    ClaimStatus.rejected: set(),
    ClaimStatus.solved: set(),
}

CONTACT_VISIBLE_STATUSES = {ClaimStatus.approved, ClaimStatus.solved}


class ClaimRoles(NamedTuple):
    finder_id: int
    owner_id: int
    authority_id: int  # decides the claim, and later marks the exchange solved

    def authority_for(self, status: ClaimStatus, item_type: ItemType) -> Optional[int]:
        status = ClaimStatus(status)

        if status == ClaimStatus.pending:
            return self.authority_id

        if status == ClaimStatus.approved:
            # found item: the finder hands it back; lost item: the owner confirms
            return self.finder_id if ItemType(item_type) == ItemType.found else self.owner_id

        return None


def resolve_roles(claim: Claim, item: Item) -> ClaimRoles:
    if ItemType(item.type) == ItemType.found:
        return ClaimRoles(finder_id=claim.poster_id, owner_id=claim.claimant_id, authority_id=claim.poster_id)

    return ClaimRoles(finder_id=claim.claimant_id, owner_id=claim.poster_id, authority_id=claim.poster_id)


def load_claim(session: Session, claim_id: uuid.UUID) -> Tuple[Claim, Item]:
    claim = session.get(Claim, claim_id)
    if not claim:
        raise NotFoundError("Claim not found")

    item = session.get(Item, claim.item_id)
    if not item:
        raise NotFoundError("Item not found")

    return claim, item


def find_active_claim(session: Session, item_id: uuid.UUID, claimant_id: int) -> Optional[Claim]:
    return session.exec(
        select(Claim)
        .where(Claim.item_id == item_id)
        .where(Claim.claimant_id == claimant_id)
        .where(Claim.status != ClaimStatus.rejected)
    ).first()


def submit_claim(
    session: Session,
    item: Item,
    claimant: User,
    answers: List[dict],
    message: Optional[str] = None,
) -> Claim:
    if ItemStatus(item.status) == ItemStatus.resolved:
        raise ConflictError("This item has already been resolved")

    # Prevent self-claim
    if item.user_id == claimant.id:
        raise ConflictError("You cannot claim your own item")

    # Prevent duplicate claim by same user
    if find_active_claim(session, item.id, claimant.id):
        raise ConflictError("You already have an active claim for this item")

    if ItemType(item.type) == ItemType.lost:
        # the claimant is reporting a sighting, there is nothing to prove
        score, graded = MAX_SCORE, []
    else:
        score, graded = calculate_verification_score(item.questions, answers or [])

    claim = Claim(
        item_id=item.id,
        poster_id=item.user_id,
        claimant_id=claimant.id,
        answers=graded,
        confidence_score=score,
        message=message,
    )

    session.add(claim)

    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictError("You already have an active claim for this item")

    session.refresh(claim)
    logger.info(f"Claim {claim.id} created by user {claimant.id} for item {item.id} (score {score})")

    if ItemType(item.type) == ItemType.found:
        title = "New claim received"
        body = f"A user has submitted a claim for your found item '{item.title}' ({score}% confidence)."
    else:
        title = "Someone may have found your item"
        body = f"A user reports having found your lost item '{item.title}'."

    notify_claim_event(session, item.user_id, title, body, item, claim_id=claim.id)

    return claim


def transition_claim(
    session: Session,
    claim: Claim,
    actor: User,
    target_status: ClaimStatus,
    reason: Optional[str] = None,
) -> Claim:
    item = session.get(Item, claim.item_id)
    if not item:
        raise NotFoundError("Item not found")

    target_status = ClaimStatus(target_status)
    current = ClaimStatus(claim.status)

    roles = resolve_roles(claim, item)
    authority = roles.authority_for(current, item.type)

    if authority is None:
        raise ConflictError(f"Claim is already {current.value}")

    if actor.id != authority:
        raise NotAuthorizedError(f"Not authorized to move this claim to {target_status.value}")

    if target_status not in TRANSITIONS[current]:
        raise ConflictError(f"Cannot move a {current.value} claim to {target_status.value}")

    now = datetime.now(timezone.utc)
    claim.status = target_status

    if target_status == ClaimStatus.rejected:
        claim.rejection_reason = reason
        claim.decided_at = now
    elif target_status == ClaimStatus.approved:
        claim.decided_at = now
    elif target_status == ClaimStatus.solved:
        claim.resolved_at = now
        item.status = ItemStatus.resolved
        session.add(item)

    session.add(claim)
    session.commit()
    session.refresh(claim)

    logger.info(f"Claim {claim.id} moved {current.value} -> {target_status.value} by user {actor.id}")

    if target_status == ClaimStatus.approved:
        title = "Your claim has been approved"
        body = f"Your claim for the item '{item.title}' has been approved. You can now see the contact details."
    elif target_status == ClaimStatus.rejected:
        title = "Your claim has been rejected"
        body = f"Your claim for the item '{item.title}' has been rejected."
        if reason:
            body += f" Reason: {reason}"
    else:
        title = "Item marked as returned"
        body = f"The item '{item.title}' has been marked as returned."

    notify_claim_event(session, claim.claimant_id, title, body, item, claim_id=claim.id)

    return claim


def get_contact_details(session: Session, claim: Claim, actor: User) -> dict:
    """Contact details of the other participant, only once the claim is approved."""
    if actor.id not in (claim.poster_id, claim.claimant_id):
        raise NotAuthorizedError("Not authorized to view this claim")

    if ClaimStatus(claim.status) not in CONTACT_VISIBLE_STATUSES:
        raise NotAuthorizedError("Claim not approved yet")

    if actor.id == claim.claimant_id:
        item = session.get(Item, claim.item_id)
        poster = session.get(User, claim.poster_id)
        if not item or not poster:
            raise NotFoundError("Poster not found")

        return {
            "name": poster.name,
            "email": item.contact_email or poster.email,
            "phone": item.contact_phone or poster.phone,
        }

    claimant = session.get(User, claim.claimant_id)
    if not claimant:
        raise NotFoundError("Claimant not found")

    return {
        "name": claimant.name,
        "email": claimant.email,
        "phone": claimant.phone,
    }
