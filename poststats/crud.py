from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import select, delete

from poststats.constants import (
    F_ACCOUNT_ID,
    F_ACCOUNT_NAME,
    F_ACCOUNT_USERNAME,
    F_FILE_IDENTIFIER,
)
from .metadata import ImportedFile
from .utils import sa_to_dict
from .schemas import HEADERS

def list_files(db: Session) -> list[ImportedFile]:
    """Return all imported-file metadata entries in upload order."""
    stmt = select(ImportedFile).order_by(ImportedFile.id)
    return list(db.execute(stmt).scalars().all())

def get_file(db: Session, file_identifier: str) -> Optional[ImportedFile]:
    stmt = select(ImportedFile).where(ImportedFile.file_identifier == file_identifier)
    return db.execute(stmt).scalars().first()

def add_file(db: Session, **fields) -> ImportedFile:
    """Stage a new metadata entry on the session (committed by the caller)."""
    entry = ImportedFile(**fields)
    db.add(entry)
    return entry

def delete_file(db: Session, file_identifier: str) -> int:
    result = db.execute(delete(ImportedFile).where(ImportedFile.file_identifier == file_identifier))
    return result.rowcount

def delete_all_files(db: Session) -> int:
    return db.execute(delete(ImportedFile)).rowcount

def to_file_dict(f: ImportedFile) -> dict:
    """Convert an ImportedFile row to a dict matching HEADERS['files'] order."""
    row = sa_to_dict(f)
    if row.get("uploaded_at"):
        row["uploaded_at"] = row["uploaded_at"].isoformat()
    return {k: row.get(k) for k in HEADERS["files"]}

def to_post_dict(record: dict, accessor) -> dict:
    """Project a stored post record onto HEADERS['posts'] through the field accessor.

    Args:
        record: stored post record (internal field -> value).
        accessor: FieldValueAccessor used to resolve every column.

    Returns:
        dict: one export row; derived engagement columns are always recomputed.
    """
    row = {k: accessor.get_value(record, k) for k in HEADERS["posts"] if k != F_FILE_IDENTIFIER}
    row[F_FILE_IDENTIFIER] = record.get(F_FILE_IDENTIFIER)
    return row

def to_account_dict(summary: dict, fields: list[str]) -> dict:
    """Project an account summary onto its identity columns plus ``fields``."""
    keys = [F_ACCOUNT_ID, F_ACCOUNT_NAME, F_ACCOUNT_USERNAME] + list(fields)
    return {k: summary.get(k) for k in keys}
