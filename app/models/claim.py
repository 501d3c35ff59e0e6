from enum import Enum
from typing import List, Optional
import uuid
from sqlalchemy import JSON, Column, Index, text
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone

class ClaimStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    solved = "solved"

class Claim(SQLModel, table=True):
    __tablename__ = "claims"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    item_id: uuid.UUID = Field(foreign_key="items.id", index=True, ondelete="CASCADE")

    # Participants
    poster_id: int = Field(foreign_key="users.id", index=True)
    claimant_id: int = Field(foreign_key="users.id", index=True)  # for sending notifications

    # [{"question": ..., "answer": ..., "is_correct": ...}]
    answers: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    confidence_score: int = Field(default=0)

    status: ClaimStatus = Field(default=ClaimStatus.pending, index=True)

    # Content
    message: Optional[str] = None
    rejection_reason: Optional[str] = None

    decided_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    __table_args__ = (
        # One active claim per claimant and item, rejected claims don't count
        Index(
            "uq_active_claim_per_claimant",
            "item_id",
            "claimant_id",
            unique=True,
            sqlite_where=text("status != 'rejected'"),
            postgresql_where=text("status != 'rejected'"),
        ),
    )
