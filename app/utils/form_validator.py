from datetime import datetime
from typing import List, Literal, Optional
from fastapi import HTTPException
from pydantic import BaseModel, Field, ValidationError

from app.utils.errors import InvalidRequestError


CategoryType = Literal[
    "Mobile",
    "Wallet",
    "Documents",
    "Bag",
    "Keys",
    "Electronics",
    "Other",
]


class ChallengeQuestion(BaseModel):
    question: str = Field(min_length=3, max_length=200)
    answer: str = Field(min_length=1, max_length=200)


class ValidatedCreateItem(BaseModel):
    item_type: Literal["lost", "found"]
    title: str = Field(min_length=3, max_length=60)
    description: str = Field(default="", max_length=500)
    category: CategoryType
    date: Optional[datetime] = None
    city: str = Field(min_length=2, max_length=60)
    area: str = Field(min_length=2, max_length=60)
    landmark: Optional[str] = Field(default=None, max_length=120)
    questions: List[ChallengeQuestion] = Field(default_factory=list, max_length=10)
    keywords: List[str] = Field(default_factory=list, max_length=20)
    contact_email: Optional[str] = Field(default=None, max_length=254)
    contact_phone: Optional[str] = Field(default=None, max_length=32)


class ValidatedItemUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=60)
    description: Optional[str] = Field(default=None, max_length=500)
    category: Optional[CategoryType] = None
    date: Optional[datetime] = None
    city: Optional[str] = Field(default=None, min_length=2, max_length=60)
    area: Optional[str] = Field(default=None, min_length=2, max_length=60)
    landmark: Optional[str] = Field(default=None, max_length=120)
    keywords: Optional[List[str]] = Field(default=None, max_length=20)


def _strip(value):
    if isinstance(value, str):
        return value.strip()
    return value


def validate_create_item(data: dict) -> ValidatedCreateItem:
    try:
        validated = ValidatedCreateItem(**{key: _strip(value) for key, value in data.items()})
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail=e.errors(include_url=False, include_context=False, include_input=False),
        )

    # a lost item's owner has nothing to quiz anyone about
    if validated.item_type == "lost" and validated.questions:
        raise InvalidRequestError("Challenge questions can only be set on found items")

    return validated


def validate_item_updates(updates: dict) -> dict:
    if "type" in updates or "item_type" in updates:
        raise InvalidRequestError("Item type cannot be changed")

    for field in updates:
        if field not in ValidatedItemUpdate.model_fields:
            raise InvalidRequestError(f"Field '{field}' cannot be updated")

    try:
        validated = ValidatedItemUpdate(**{key: _strip(value) for key, value in updates.items()})
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail=e.errors(include_url=False, include_context=False, include_input=False),
        )

    return validated.model_dump(exclude_unset=True, exclude_none=True)
