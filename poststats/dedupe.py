# Duplicates are keyed by (post_id, file_identifier); rows without a post id
# fall back to whole-record equality.

import json
import logging
from dataclasses import dataclass, field

from poststats.constants import F_FILE_IDENTIFIER, F_POST_ID

logger = logging.getLogger(__name__)


@dataclass
class DedupeResult:
    filtered_records: list[dict]
    new_records: list[dict]
    stats: dict = field(default_factory=dict)


def record_fingerprint(record: dict) -> str:
    return json.dumps(record, sort_keys=True, ensure_ascii=False, default=str)


def _identity_key(record: dict, file_identifier, accessor):
    post_id = accessor.get_value(record, F_POST_ID)
    if post_id is None or post_id == "":
        return ("row", record_fingerprint(record))
    return ("post", str(post_id), file_identifier or "")


def dedupe(new_records, existing_records, file_identifier: str, accessor) -> DedupeResult:
    """Drop duplicate rows from ``new_records``.

    Args:
        new_records: raw records of the batch being imported.
        existing_records: previously stored post records (may be empty).
        file_identifier: identifier of the batch being imported.
        accessor: FieldValueAccessor used to resolve ``post_id``.

    Returns:
        DedupeResult: ``filtered_records`` holds existing records followed by the
        surviving new ones; ``new_records`` holds only the surviving new ones.
    """
    existing_records = existing_records or []
    seen = {}
    for row in existing_records:
        seen[_identity_key(row, row.get(F_FILE_IDENTIFIER), accessor)] = row

    survivors = []
    duplicate_ids = []
    duplicates = 0
    for row in new_records:
        key = _identity_key(row, file_identifier, accessor)
        if key in seen:
            duplicates += 1
            if key[0] == "post" and f"{key[1]}|{key[2]}" not in duplicate_ids:
                duplicate_ids.append(f"{key[1]}|{key[2]}")
            continue
        seen[key] = row
        survivors.append(row)

    if duplicates:
        logger.info("Removed %d duplicate rows from %s", duplicates, file_identifier)

    return DedupeResult(
        filtered_records=list(existing_records) + survivors,
        new_records=survivors,
        stats={
            "total_rows": len(existing_records) + len(new_records),
            "duplicates": duplicates,
            "duplicate_ids": duplicate_ids,
        },
    )
