"""
Similarity between a lost report and a found report.

The score is a weighted sum of independent signals, each either fully
credited or not (keywords and time give partial credit):

    category   0.40  same category, alias group, or title naming the other's category
    city       0.20  case-insensitive exact match
    area       0.10  one area contained in the other ("andheri" / "andheri west")
    keywords   0.20  overlap of title/description/manual keywords
    time       0.10  posted within 7 days (half credit within 30)

Missing fields never raise, they simply don't match.
"""
import re
from datetime import datetime, timezone
from typing import Optional

from app.models.item import Item

WEIGHTS = {
    "category": 0.4,
    "city": 0.2,
    "area": 0.1,
    "keywords": 0.2,
    "time": 0.1,
}

FULL_TIME_CREDIT_DAYS = 7
HALF_TIME_CREDIT_DAYS = 30

CATEGORY_GROUPS = frozenset({
    frozenset({"mobile", "phone", "iphone", "smartphone", "cellphone", "android"}),
    frozenset({"wallet", "purse", "pouch", "bag"}),
    frozenset({"keys", "keychain", "car keys"}),
    frozenset({"laptop", "computer", "macbook", "electronics"}),
    frozenset({"watch", "smartwatch", "fitness band"}),
})

# token -> its alias group, built once
CATEGORY_INDEX = {token: group for group in CATEGORY_GROUPS for token in group}

STOP_WORDS = frozenset({
    "the", "a", "an", "in", "on", "at", "for", "to", "of", "with",
    "is", "my", "i", "lost", "found", "its", "it",
})

TOKEN_SPLIT = re.compile(r"[\s,.\-;:!?/()'\"]+")


def _normalize(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def categories_related(first: Optional[str], second: Optional[str]) -> bool:
    first, second = _normalize(first), _normalize(second)

    if not first or not second:
        return False

    if first == second:
        return True

    group = CATEGORY_INDEX.get(first)
    return group is not None and second in group


def extract_keywords(item: Item) -> set:
    words = TOKEN_SPLIT.split(_normalize(item.title)) + TOKEN_SPLIT.split(_normalize(item.description))
    words += [_normalize(keyword) for keyword in item.keywords or []]

    return {word for word in words if len(word) > 2 and word not in STOP_WORDS}


def keywords_match(first: str, second: str) -> bool:
    if first == second:
        return True

    shorter, longer = sorted((first, second), key=len)
    return len(shorter) > 3 and shorter in longer


def _count_matched(source: set, target: set) -> int:
    return sum(1 for word in source if any(keywords_match(word, other) for other in target))


def keyword_score(first: Item, second: Item) -> float:
    kw1 = extract_keywords(first)
    kw2 = extract_keywords(second)

    if not kw1 or not kw2:
        return 0.0

    # count from both sides so the result doesn't depend on argument order
    matched = max(_count_matched(kw1, kw2), _count_matched(kw2, kw1))
    match_ratio = matched / max(len(kw1), len(kw2))

    return min(match_ratio * 2, 1.0) * WEIGHTS["keywords"]


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def time_score(first: Item, second: Item) -> float:
    created1, created2 = _as_utc(first.created_at), _as_utc(second.created_at)

    if created1 is None or created2 is None:
        return 0.0

    days_diff = abs((created1 - created2).total_seconds()) / 86400

    if days_diff <= FULL_TIME_CREDIT_DAYS:
        return WEIGHTS["time"]
    if days_diff <= HALF_TIME_CREDIT_DAYS:
        return WEIGHTS["time"] * 0.5
    return 0.0


def calculate_similarity(first: Item, second: Item) -> float:
    score = 0.0

    if (
        categories_related(first.category, second.category)
        or categories_related(first.title, second.category)
        or categories_related(first.category, second.title)
    ):
        score += WEIGHTS["category"]

    city1, city2 = _normalize(first.city), _normalize(second.city)
    if city1 and city1 == city2:
        score += WEIGHTS["city"]

    area1, area2 = _normalize(first.area), _normalize(second.area)
    if area1 and area2 and (area1 in area2 or area2 in area1):
        score += WEIGHTS["area"]

    score += keyword_score(first, second)
    score += time_score(first, second)

    return min(max(score, 0.0), 1.0)
