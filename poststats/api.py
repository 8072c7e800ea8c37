from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import StreamingResponse, Response
import csv, io
from typing import Optional, Annotated

import pandas as pd

from poststats.constants import ACCOUNT_VIEW_FIELDS, ALL_ACCOUNTS, COLUMN_GROUPS, DISPLAY_NAMES, KEY_POST_VIEW
from .aggregate import aggregate_by_account, aggregate_by_post_type, compute_total_row, unique_account_names
from .crud import to_account_dict, to_post_dict
from .errors import MappingConflictError, ParseError, PersistenceError, ValidationError
from .ingest import ImportCoordinator, analyze_csv
from .mapping import ColumnMappingResolver
from .schemas import HEADERS, HeadersPayload, MappingPayload, RenamePayload

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

def get_resolver(request: Request) -> ColumnMappingResolver:
    return request.app.state.resolver

def get_coordinator(request: Request) -> ImportCoordinator:
    return request.app.state.coordinator

def stream_csv(dict_rows, headers, filename: str):
    """Stream an iterable of dict rows as a CSV HTTP response.

    Args:
        dict_rows: Iterable of dict-like rows (order implied by `headers`).
        headers: List of column names (fieldnames for CSV DictWriter).
        filename: Suggested filename included in Content-Disposition header.

    Returns:
        fastapi.responses.StreamingResponse streaming CSV text.
    """
    def iter_rows():
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=headers, extrasaction="ignore")
        writer.writeheader()
        yield buf.getvalue()
        buf.seek(0); buf.truncate(0)
        for row in dict_rows:
            writer.writerow(row)
            yield buf.getvalue()
            buf.seek(0); buf.truncate(0)

    return StreamingResponse(
        iter_rows(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )

def selected_account_fields(
    fields: Annotated[Optional[list[str]], Query()] = None,
):
    """Validate the requested per-account fields (defaults to all of them).

    Raises:
        HTTPException 422: if an unknown field is requested.
    """
    if not fields:
        return list(ACCOUNT_VIEW_FIELDS)
    unknown = [f for f in fields if f not in ACCOUNT_VIEW_FIELDS]
    if unknown:
        raise HTTPException(status_code=422, detail=f"Unknown fields: {unknown}")
    return fields

def account_rows(coordinator: ImportCoordinator, fields: list[str]):
    posts = coordinator.store.get(KEY_POST_VIEW, [])
    accessor = coordinator.accessor
    summaries = aggregate_by_account(posts, fields, accessor)
    return [to_account_dict(s, fields) for s in summaries], compute_total_row(posts, fields, accessor)

@router.get("/health")
def health():
    """Healthcheck endpoint."""
    return {"status": "ok"}

@router.get("/mappings")
def read_mappings(resolver: ColumnMappingResolver = Depends(get_resolver)):
    """Return the current mapping plus display names and field groups for editors."""
    return {
        "mappings": resolver.get_mapping(),
        "display_names": DISPLAY_NAMES,
        "column_groups": COLUMN_GROUPS,
    }

@router.put("/mappings")
def save_mappings(payload: MappingPayload, resolver: ColumnMappingResolver = Depends(get_resolver)):
    try:
        return {"mappings": resolver.save_mapping(payload.mappings)}
    except MappingConflictError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except PersistenceError as exc:
        raise HTTPException(status_code=507, detail=str(exc))

@router.patch("/mappings")
def rename_mapping(payload: RenamePayload, resolver: ColumnMappingResolver = Depends(get_resolver)):
    """Rename one external column name, keeping the internal field it maps to."""
    try:
        return {"mappings": resolver.rename_external(payload.old_name, payload.new_name)}
    except KeyError:
        raise HTTPException(status_code=404, detail=f"No mapping for '{payload.old_name}'")
    except MappingConflictError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except PersistenceError as exc:
        raise HTTPException(status_code=507, detail=str(exc))

@router.delete("/mappings")
def reset_mappings(resolver: ColumnMappingResolver = Depends(get_resolver)):
    try:
        return {"mappings": resolver.reset_mapping()}
    except PersistenceError as exc:
        raise HTTPException(status_code=507, detail=str(exc))

@router.post("/mappings/validate")
def validate_headers(payload: HeadersPayload, resolver: ColumnMappingResolver = Depends(get_resolver)):
    return resolver.validate_required_columns(payload.headers)

def read_upload(file: UploadFile) -> str:
    try:
        return file.file.read().decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded")

@router.post("/imports/analyze")
def analyze_import(file: UploadFile = File(...)):
    """Describe an upload (columns, approximate rows, sample) without importing it."""
    try:
        return analyze_csv(read_upload(file))
    except ParseError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

@router.post("/imports")
def create_import(
    file: UploadFile = File(...),
    merge: bool = Form(False),
    force: bool = Form(False),
    coordinator: ImportCoordinator = Depends(get_coordinator),
):
    """Import a CSV export.

    Args:
        file: uploaded CSV file.
        merge: merge with the stored data instead of replacing it.
        force: continue even if required columns are missing.
        coordinator: import coordinator dependency.

    Returns:
        dict: import summary (identifier, counts, duplicate stats, date range).
    """
    csv_text = read_upload(file)
    try:
        result = coordinator.import_data(
            csv_text,
            merge_with_existing=merge,
            file_label=file.filename or "Instagram CSV",
            force=force,
        )
    except ParseError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail={"message": str(exc), "missing_columns": exc.missing_columns},
        )
    except PersistenceError as exc:
        raise HTTPException(status_code=507, detail=str(exc))
    return result.summary()

@router.get("/accounts")
def accounts(
    fields: list[str] = Depends(selected_account_fields),
    coordinator: ImportCoordinator = Depends(get_coordinator),
):
    """Per-account rollups for the requested fields, with a total row."""
    rows, total = account_rows(coordinator, fields)
    return {"fields": fields, "rows": rows, "total": total}

@router.get("/accounts/export.csv")
def export_accounts_csv(
    fields: list[str] = Depends(selected_account_fields),
    coordinator: ImportCoordinator = Depends(get_coordinator),
):
    rows, total = account_rows(coordinator, fields)
    headers = [h for h in HEADERS["accounts"] if h in fields or h in HEADERS["accounts"][:3]]
    return stream_csv(rows + [total], headers, "accounts.csv")

@router.get("/accounts/export.xlsx")
def export_accounts_xlsx(
    fields: list[str] = Depends(selected_account_fields),
    coordinator: ImportCoordinator = Depends(get_coordinator),
):
    rows, total = account_rows(coordinator, fields)
    headers = [h for h in HEADERS["accounts"] if h in fields or h in HEADERS["accounts"][:3]]
    df = pd.DataFrame(rows + [total], columns=headers)
    buf = io.BytesIO()
    df.to_excel(buf, index=False, sheet_name="Post statistics", engine="openpyxl")
    return Response(
        content=buf.getvalue(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="accounts.xlsx"'},
    )

@router.get("/posts")
def posts(
    limit: Annotated[int, Query(gt=0, le=1000)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
    coordinator: ImportCoordinator = Depends(get_coordinator),
):
    records = coordinator.store.get(KEY_POST_VIEW, [])
    page = records[offset:offset + limit]
    return {
        "total": len(records),
        "rows": [to_post_dict(r, coordinator.accessor) for r in page],
    }

@router.get("/posts/export.csv")
def export_posts_csv(coordinator: ImportCoordinator = Depends(get_coordinator)):
    records = coordinator.store.get(KEY_POST_VIEW, [])
    dicts = (to_post_dict(r, coordinator.accessor) for r in records)
    return stream_csv(dicts, HEADERS["posts"], "posts.csv")

@router.get("/post-types")
def post_types(
    account: str = ALL_ACCOUNTS,
    reliable_only: bool = False,
    coordinator: ImportCoordinator = Depends(get_coordinator),
):
    """Per-post-type statistics, optionally for one account name."""
    records = coordinator.store.get(KEY_POST_VIEW, [])
    rows = aggregate_by_post_type(records, coordinator.accessor, selected_account=account)
    if reliable_only:
        rows = [r for r in rows if r["is_reliable"]]
    return {
        "accounts": unique_account_names(records, coordinator.accessor),
        "rows": rows,
    }

@router.get("/files")
def files(coordinator: ImportCoordinator = Depends(get_coordinator)):
    return coordinator.list_files()

@router.delete("/files/{file_identifier}")
def delete_file(file_identifier: str, coordinator: ImportCoordinator = Depends(get_coordinator)):
    try:
        return coordinator.remove_file(file_identifier)
    except KeyError:
        raise HTTPException(status_code=404, detail="File not found")
    except PersistenceError as exc:
        raise HTTPException(status_code=507, detail=str(exc))

@router.delete("/data")
def clear_data(coordinator: ImportCoordinator = Depends(get_coordinator)):
    try:
        coordinator.clear_all_data()
    except PersistenceError as exc:
        raise HTTPException(status_code=507, detail=str(exc))
    return {"status": "cleared"}
