from pydantic import BaseModel

from poststats.constants import (
    ACCOUNT_VIEW_FIELDS,
    F_ACCOUNT_ID,
    F_ACCOUNT_NAME,
    F_ACCOUNT_USERNAME,
    F_DESCRIPTION,
    F_FILE_IDENTIFIER,
    F_PERMALINK,
    F_POST_COUNT,
    F_POST_ID,
    F_POST_TYPE,
    F_PUBLISH_TIME,
    POST_TYPE_METRICS,
    POST_VIEW_FIELDS,
)

HEADERS = {
    "accounts": [F_ACCOUNT_ID, F_ACCOUNT_NAME, F_ACCOUNT_USERNAME] + ACCOUNT_VIEW_FIELDS,
    "posts": [
        F_POST_ID, F_ACCOUNT_ID, F_ACCOUNT_NAME, F_ACCOUNT_USERNAME,
        F_DESCRIPTION, F_PUBLISH_TIME, F_POST_TYPE, F_PERMALINK,
    ] + POST_VIEW_FIELDS + [F_FILE_IDENTIFIER],
    "post_types": [F_POST_TYPE, F_POST_COUNT, "percentage", "is_reliable"]
    + [m for metric in POST_TYPE_METRICS for m in (metric, f"{metric}_sum")],
    "files": [
        "filename", "file_identifier", "uploaded_at", "row_count",
        "duplicate_count", "account_count", "start_date", "end_date",
    ],
}


class MappingPayload(BaseModel):
    mappings: dict[str, str]


class RenamePayload(BaseModel):
    old_name: str
    new_name: str


class HeadersPayload(BaseModel):
    headers: list[str]
