"""
Key-value entry table backing the SQL store.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from activity_status.models.base import Base


class KVEntryModel(Base):
    """SQLAlchemy ORM model for one stored key."""

    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    # Naive UTC; NULL means the entry never expires
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<KVEntryModel(key='{self.key}', expires_at={self.expires_at})>"
