import argparse
import io
import logging
import re
import time
import uuid
from dataclasses import dataclass, field

import pandas as pd

from poststats.constants import (
    ACCOUNT_VIEW_FIELDS,
    F_FILE_IDENTIFIER,
    KEY_ACCOUNT_VIEW,
    KEY_POST_VIEW,
)
from . import crud
from .aggregate import aggregate_by_account, compute_date_range, count_unique_accounts
from .database import SessionLocal, init_db
from .dedupe import dedupe
from .errors import EmptyDataError, ParseError
from .fields import FieldValueAccessor, parse_field_value
from .mapping import ColumnMappingResolver, MappingCache
from .storage import KeyValueStore
from .validate import check_required_columns

logger = logging.getLogger(__name__)


@dataclass
class ImportBatchResult:
    account_view_data: list[dict]
    post_view_data: list[dict]
    stats: dict
    date_range: dict
    is_merged_data: bool
    file_identifier: str
    filename: str
    processed_at: float = field(default_factory=time.time)

    @property
    def rows(self) -> list[dict]:
        return self.post_view_data

    def summary(self) -> dict:
        return {
            "filename": self.filename,
            "file_identifier": self.file_identifier,
            "row_count": len(self.post_view_data),
            "account_count": len(self.account_view_data),
            "stats": self.stats,
            "date_range": self.date_range,
            "is_merged_data": self.is_merged_data,
        }


def read_csv_text(csv_text: str, nrows: int | None = None) -> pd.DataFrame:
    """Parse CSV text into a string-typed DataFrame.

    Raises:
        EmptyDataError: no header or no data rows.
        ParseError: the text is not valid CSV.
    """
    if not csv_text or not csv_text.strip():
        raise EmptyDataError("No data found in the CSV file.")
    try:
        df = pd.read_csv(
            io.StringIO(csv_text.lstrip("\ufeff")),
            dtype=str,
            keep_default_na=False,
            na_values=[""],
            skip_blank_lines=True,
            nrows=nrows,
        )
    except pd.errors.EmptyDataError as exc:
        raise EmptyDataError("No data found in the CSV file.") from exc
    except (pd.errors.ParserError, UnicodeError, ValueError) as exc:
        raise ParseError(f"Could not parse CSV: {exc}") from exc
    if df.empty:
        raise EmptyDataError("No data found in the CSV file.")
    return df


def parse_csv(csv_text: str) -> tuple[list[str], list[dict]]:
    """Return the header row and the raw records (empty cells become None)."""
    df = read_csv_text(csv_text)
    headers = [str(c) for c in df.columns]
    df = df.astype(object).where(pd.notna(df), None)
    return headers, df.to_dict("records")


def analyze_csv(csv_text: str) -> dict:
    """Describe a CSV file without importing it."""
    df = read_csv_text(csv_text, nrows=5)
    df = df.astype(object).where(pd.notna(df), None)
    size = len(csv_text.encode("utf-8"))
    return {
        "columns": len(df.columns),
        "column_names": [str(c) for c in df.columns],
        "rows": max(len(csv_text.strip().splitlines()) - 1, 0),  # approximate
        "sample_data": df.head(3).to_dict("records"),
        "file_size": size,
        "file_size_kb": round(size / 1024),
    }


def make_file_identifier(file_label: str) -> str:
    safe = re.sub(r"[^a-zA-Z0-9]", "_", file_label or "")
    return f"{safe}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


def _is_empty(value) -> bool:
    return value is None or value == ""


def map_column_names(row: dict, resolver, mapping: dict) -> dict:
    """Rename raw headers to internal fields; unmatched headers are kept as-is.

    When several headers resolve to one field, a match through ``mapping`` beats
    a match through the alternative names, and an empty cell never replaces a value.
    """
    mapped = {}
    rank = {}
    for header, value in row.items():
        internal, priority = resolver.match_mapping(header, mapping), 2
        if internal is None:
            internal, priority = resolver.match_alternative(header), 1
        if internal is None:
            internal, priority = header, 0
        value = parse_field_value(internal, value)
        if internal in mapped:
            if _is_empty(value):
                continue
            if priority <= rank[internal] and not _is_empty(mapped[internal]):
                continue
        mapped[internal] = value
        rank[internal] = priority
    return mapped


class ImportCoordinator:
    """Runs parse -> validate -> dedupe -> map -> aggregate -> persist.

    Only one import may run at a time against a store; callers serialize.
    """

    def __init__(self, store: KeyValueStore, resolver: ColumnMappingResolver, notify=None):
        self.store = store
        self.resolver = resolver
        self.accessor = FieldValueAccessor(resolver)
        self.notify = notify or logger.info

    def import_data(
        self,
        csv_text: str,
        mapping: dict | None = None,
        merge_with_existing: bool = False,
        file_label: str = "Instagram CSV",
        force: bool = False,
    ) -> ImportBatchResult:
        """Import one CSV export.

        Args:
            csv_text: full CSV file content.
            mapping: header mapping to apply; defaults to the resolver's current mapping.
            merge_with_existing: keep stored posts and add this batch to them.
            file_label: original filename, used for metadata and the file identifier.
            force: import even when required columns are missing.

        Returns:
            ImportBatchResult for the committed import.

        Raises:
            ParseError/EmptyDataError, ValidationError, PersistenceError.
        """
        headers, raw_records = parse_csv(csv_text)
        check_required_columns(headers, self.resolver, force=force)
        if mapping is None:
            mapping = self.resolver.get_mapping()
            accessor = self.accessor
        else:
            accessor = FieldValueAccessor(ColumnMappingResolver(self.store, MappingCache(mapping)))

        file_identifier = make_file_identifier(file_label)
        existing_posts = self.store.get(KEY_POST_VIEW, []) if merge_with_existing else []
        logger.info("Importing %d rows from %s (merge=%s, existing posts=%d)",
                    len(raw_records), file_label, merge_with_existing, len(existing_posts))

        accounts_in_file = count_unique_accounts(raw_records, accessor)
        result = dedupe(raw_records, existing_posts, file_identifier, accessor)

        new_posts = []
        for row in result.new_records:
            mapped = map_column_names(row, self.resolver, mapping)
            mapped[F_FILE_IDENTIFIER] = file_identifier
            new_posts.append(mapped)

        posts = list(existing_posts) + new_posts
        rollups = aggregate_by_account(posts, ACCOUNT_VIEW_FIELDS, accessor)
        date_range = compute_date_range(posts, accessor)
        file_range = compute_date_range(new_posts, accessor)

        with self.store.transaction() as tx:
            if not merge_with_existing:
                crud.delete_all_files(tx.session)
            tx.set(KEY_POST_VIEW, posts)
            tx.set(KEY_ACCOUNT_VIEW, rollups)
            crud.add_file(
                tx.session,
                filename=file_label,
                file_identifier=file_identifier,
                row_count=len(raw_records),
                duplicate_count=result.stats["duplicates"],
                account_count=accounts_in_file,
                start_date=file_range["start_date"],
                end_date=file_range["end_date"],
            )

        if result.stats["duplicates"]:
            self.notify(f"{result.stats['duplicates']} duplicates were filtered out of "
                        f"{result.stats['total_rows']} rows.")
        self.notify(f"Imported {len(new_posts)} posts from {file_label}.")

        return ImportBatchResult(
            account_view_data=rollups,
            post_view_data=posts,
            stats=result.stats,
            date_range=date_range,
            is_merged_data=merge_with_existing,
            file_identifier=file_identifier,
            filename=file_label,
        )

    def get_processed_data(self) -> dict:
        posts = self.store.get(KEY_POST_VIEW, [])
        return {
            "rows": posts,
            "account_view_data": self.store.get(KEY_ACCOUNT_VIEW, []),
            "post_view_data": posts,
        }

    def list_files(self) -> list[dict]:
        with self.store.session_factory() as session:
            return [crud.to_file_dict(f) for f in crud.list_files(session)]

    def remove_file(self, file_identifier: str) -> dict:
        """Delete one imported file and its posts, then recompute the rollups.

        Raises:
            KeyError: no file with that identifier.
        """
        posts = self.store.get(KEY_POST_VIEW, [])
        remaining = [p for p in posts if p.get(F_FILE_IDENTIFIER) != file_identifier]
        rollups = aggregate_by_account(remaining, ACCOUNT_VIEW_FIELDS, self.accessor)
        with self.store.transaction() as tx:
            if crud.get_file(tx.session, file_identifier) is None:
                raise KeyError(file_identifier)
            crud.delete_file(tx.session, file_identifier)
            tx.set(KEY_POST_VIEW, remaining)
            tx.set(KEY_ACCOUNT_VIEW, rollups)
        removed = len(posts) - len(remaining)
        self.notify(f"Removed {removed} posts from {file_identifier}.")
        return {"removed_posts": removed, "remaining_posts": len(remaining), "accounts": len(rollups)}

    def clear_all_data(self) -> None:
        """Remove posts, rollups and file metadata; the saved column mapping stays."""
        with self.store.transaction() as tx:
            tx.remove(KEY_POST_VIEW)
            tx.remove(KEY_ACCOUNT_VIEW)
            crud.delete_all_files(tx.session)
        self.notify("All imported data was cleared.")


def run(csv_path: str, merge: bool = False, force: bool = False, label: str | None = None) -> ImportBatchResult:
    init_db()
    store = KeyValueStore(SessionLocal)
    coordinator = ImportCoordinator(store, ColumnMappingResolver(store))
    with open(csv_path, encoding="utf-8-sig") as f:
        csv_text = f.read()
    return coordinator.import_data(
        csv_text, merge_with_existing=merge, file_label=label or csv_path, force=force
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Import a post statistics CSV export")
    parser.add_argument("--csv", required=True, help="Path to the CSV export")
    parser.add_argument("--merge", action="store_true", help="Merge with previously imported data")
    parser.add_argument("--force", action="store_true", help="Import even if required columns are missing")
    parser.add_argument("--label", help="File label (defaults to the path)")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    res = run(args.csv, merge=args.merge, force=args.force, label=args.label)
    print(f"Import complete. Rows in: {res.stats['total_rows']}, duplicates: {res.stats['duplicates']}, "
          f"posts stored: {len(res.post_view_data)}, accounts: {len(res.account_view_data)}")
