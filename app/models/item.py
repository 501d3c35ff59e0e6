from enum import Enum
from typing import List, Optional
import uuid
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone

class ItemType(str, Enum):
    lost = "lost"
    found = "found"

class ItemStatus(str, Enum):
    active = "active"
    hidden = "hidden"
    resolved = "resolved"

# Never serialised on public reads
PRIVATE_FIELDS = {"contact_email", "contact_phone", "questions", "user_id"}


class Item(SQLModel, table=True):
    __tablename__ = "items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)

    # Reporter info
    user_id: int = Field(foreign_key="users.id", index=True)
    contact_email: Optional[str] = Field(default=None)
    contact_phone: Optional[str] = Field(default=None)

    # Item fields
    type: ItemType = Field(index=True)  # disposition, fixed at creation
    title: str
    category: Optional[str] = Field(default=None, index=True)
    description: str = Field(default="")
    date: Optional[datetime] = Field(default=None)

    # Location
    city: Optional[str] = Field(default=None, index=True)
    area: Optional[str] = Field(default=None)
    landmark: Optional[str] = Field(default=None)

    # [{"question": ..., "answer": ...}], set by the finder of a found item
    questions: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    keywords: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # Moderation
    status: ItemStatus = Field(default=ItemStatus.active, index=True)

    def public_dict(self):
        data = self.model_dump(exclude=PRIVATE_FIELDS)
        data["questions"] = [q["question"] for q in self.questions or []]
        return data
