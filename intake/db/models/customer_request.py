"""CustomerRequestRecord model: one row per request.

``data`` holds the full JSON document and is the source of truth. ``status``,
``created_at`` and ``updated_at`` are denormalized from it for indexing and
sorting and are rewritten from the document on every write. ``version`` is
the optimistic concurrency counter.
"""

from sqlalchemy import Column, DateTime, Integer, String, Text

from intake.db.base import Base


class CustomerRequestRecord(Base):
    __tablename__ = "customer_requests"

    id = Column(String(32), primary_key=True)
    data = Column(Text, nullable=False)

    status = Column(String(50), nullable=False, index=True)
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, index=True)
