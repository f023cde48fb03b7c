from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint

from boutique.database.base import Base


class LedgerCollection(Base):
    """One JSON array (customers, sales, expenses or products) per user."""

    __tablename__ = "ledger_collections"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(120), nullable=False)
    collection = Column(String(40), nullable=False)
    payload = Column(Text, nullable=False, default="[]")

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "collection", name="uq_ledger_collections_user_collection"),
    )


__all__ = ["LedgerCollection"]
