"""DatasetSnapshot model — the whole sponsorship dataset stored as one JSON document."""

from sqlalchemy import Column, DateTime, Integer, Text
from sqlalchemy.sql import func

from app.database import Base


class DatasetSnapshot(Base):
    """Single-row table holding the serialized dataset.

    The dataset is an aggregate root that is always read and written whole,
    so it is kept as one document rather than normalized into tables.

    Attributes:
        id: Primary key. The repository only ever uses row ``1``.
        payload: JSON-serialized dataset.
        version: Incremented on every write.
        updated_at: Timestamp of the last write.
    """

    __tablename__ = "dataset_snapshot"

    id = Column(Integer, primary_key=True)
    payload = Column(Text, nullable=False)
    version = Column(Integer, default=1, nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)
