import logging
import math
from typing import List, Tuple
from sqlmodel import Session, select

from app.models.item import Item, ItemStatus, ItemType
from app.services.notifier import notify_match
from app.services.similarity import calculate_similarity

logger = logging.getLogger(__name__)

MATCH_THRESHOLD = 0.6


def opposite_type(item_type: ItemType) -> ItemType:
    return ItemType.found if ItemType(item_type) == ItemType.lost else ItemType.lost


def find_candidates(session: Session, item: Item) -> List[Item]:
    # No city filter here, a mislabelled location can still be a good match
    return session.exec(
        select(Item)
        .where(Item.type == opposite_type(item.type))
        .where(Item.status != ItemStatus.resolved)
        .where(Item.id != item.id)
    ).all()


def score_candidates(item: Item, candidates: List[Item]) -> List[Tuple[Item, float]]:
    matches = []

    for candidate in candidates:
        score = calculate_similarity(item, candidate)
        logger.debug(f"Candidate {candidate.id} score: {score:.2f} (threshold {MATCH_THRESHOLD})")

        if score >= MATCH_THRESHOLD:
            matches.append((candidate, score))

    matches.sort(key=lambda match: match[1], reverse=True)
    return matches


def find_matches_and_notify(session: Session, item: Item) -> List[Tuple[Item, float]]:
    """Run after ``item`` is committed: notify both posters of every match.

    Notification failures are logged and skipped so the item's creation
    still succeeds. Safe to call again, pairs are only notified once.
    """
    logger.info(f"Matching started for item {item.id} ({ItemType(item.type).value}) - {item.title}")

    candidates = find_candidates(session, item)
    logger.info(f"Found {len(candidates)} {opposite_type(item.type).value} candidates")

    matches = score_candidates(item, candidates)

    for candidate, score in matches:
        percentage = int(math.floor(score * 100 + 0.5))

        for recipient_item, matched_item in ((item, candidate), (candidate, item)):
            try:
                notify_match(session, recipient_item, matched_item, percentage)
            except Exception:
                session.rollback()
                logger.exception(f"Error creating notification for match {matched_item.id}")

    return matches
