from sqlalchemy import String, Integer, DateTime, Text, LargeBinary, func
from sqlalchemy.orm import Mapped, mapped_column
from .database import Base
from poststats.constants import TBL_KV_ENTRIES, TBL_BLOB_ENTRIES


class KeyValueEntry(Base):
    __tablename__ = TBL_KV_ENTRIES
    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)  # JSON text
    updated_at: Mapped["DateTime"] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class BlobEntry(Base):
    __tablename__ = TBL_BLOB_ENTRIES
    key: Mapped[str] = mapped_column(String, primary_key=True)
    payload: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)  # UTF-8 JSON
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped["DateTime"] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
