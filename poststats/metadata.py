from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, DateTime, func
from .database import Base
from poststats.constants import TBL_IMPORTED_FILES

class ImportedFile(Base):
    __tablename__ = TBL_IMPORTED_FILES
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    filename: Mapped[str] = mapped_column(String, nullable=False)
    file_identifier: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    row_count: Mapped[int] = mapped_column(Integer, nullable=False)
    duplicate_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    account_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # this file's rows only
    start_date: Mapped[str | None] = mapped_column(String, nullable=True)  # YYYY-MM-DD
    end_date: Mapped[str | None] = mapped_column(String, nullable=True)
    uploaded_at: Mapped["DateTime"] = mapped_column(DateTime(timezone=True), server_default=func.now())
