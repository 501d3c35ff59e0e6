from enum import Enum
from typing import Optional
import uuid
from sqlalchemy import Index, text
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone

class NotificationType(str, Enum):
    match_found = "match_found"
    claim_event = "claim_event"
    system = "system"

class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Ownership
    user_id: int = Field(foreign_key="users.id", index=True)

    # Notification fields
    type: NotificationType = Field(default=NotificationType.system, index=True)

    title: str
    message: str

    # The recipient's own item
    item_id: Optional[uuid.UUID] = Field(
        default=None,
        foreign_key="items.id",
        index=True,
        ondelete="CASCADE",
    )

    # The item that caused it (the match)
    related_item_id: Optional[uuid.UUID] = Field(
        default=None,
        foreign_key="items.id",
        index=True,
        ondelete="CASCADE",
    )

    claim_id: Optional[uuid.UUID] = Field(
        default=None,
        foreign_key="claims.id",
        ondelete="CASCADE",
    )

    is_read: bool = Field(default=False)

    __table_args__ = (
        # A user hears about a given matched item once
        Index(
            "uq_match_notification",
            "user_id",
            "related_item_id",
            unique=True,
            sqlite_where=text("type = 'match_found'"),
            postgresql_where=text("type = 'match_found'"),
        ),
    )
