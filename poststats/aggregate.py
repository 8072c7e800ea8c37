# Rollups are recomputed from the full post set; composite engagement fields
# come from summed parts and are never summed themselves.

from poststats.constants import (
    ALL_ACCOUNTS,
    BASE_METRICS,
    ENGAGEMENT_EXTENDED_PARTS,
    ENGAGEMENT_PARTS,
    F_ACCOUNT_ID,
    F_ACCOUNT_NAME,
    F_ACCOUNT_USERNAME,
    F_AVERAGE_REACH,
    F_ENGAGEMENT,
    F_ENGAGEMENT_EXTENDED,
    F_POST_COUNT,
    F_POST_TYPE,
    F_POSTS_PER_DAY,
    F_REACH,
    F_VIEWS,
    MIN_POSTS_FOR_RELIABLE_STATS,
    POST_TYPE_METRICS,
    SUMMABLE_FIELDS,
    TOTAL_EXCLUDED_FIELDS,
    TOTAL_ROW_LABEL,
    UNKNOWN_ACCOUNT_NAME,
    UNKNOWN_POST_TYPE,
)
from .fields import as_number, is_numeric
from .utils import round_half_up


def group_by_account(records, accessor) -> dict:
    """Group records by account id; records without one are left out."""
    groups = {}
    for record in records:
        account_id = accessor.get_value(record, F_ACCOUNT_ID)
        if account_id is None or account_id == "":
            continue
        groups.setdefault(str(account_id), (account_id, []))[1].append(record)
    return groups


def posts_per_day(posts, accessor):
    count = len(posts)
    dates = [d for d in (accessor.publish_date(p) for p in posts) if d is not None]
    if not dates:
        return count
    days_span = max((max(dates) - min(dates)).days + 1, 1)
    return round_half_up(count / days_span, 1)


def _sum_fields(posts, fields, accessor) -> dict:
    totals = {f: 0 for f in fields}
    for post in posts:
        for f in fields:
            totals[f] += as_number(accessor.get_value(post, f))
    return totals


def _emit_fields(row: dict, sums: dict, selected_fields) -> None:
    for f in selected_fields:
        if f == F_ENGAGEMENT:
            row[f] = sum(sums[p] for p in ENGAGEMENT_PARTS)
        elif f == F_ENGAGEMENT_EXTENDED:
            row[f] = sum(sums[p] for p in ENGAGEMENT_EXTENDED_PARTS)
        elif f in sums:
            row[f] = sums[f]


def summarize_account(account_id, posts, selected_fields, accessor) -> dict:
    """Build one account summary from its posts.

    Base engagement metrics are always accumulated because the composite
    fields depend on them; only ``selected_fields`` are emitted.
    """
    first = posts[0] if posts else {}
    summary = {
        F_ACCOUNT_ID: account_id,
        F_ACCOUNT_NAME: accessor.get_value(first, F_ACCOUNT_NAME) or UNKNOWN_ACCOUNT_NAME,
        F_ACCOUNT_USERNAME: accessor.get_value(first, F_ACCOUNT_USERNAME) or "-",
    }
    wanted = [f for f in (F_VIEWS, F_REACH) if f in selected_fields]
    sums = _sum_fields(posts, BASE_METRICS + wanted, accessor)
    _emit_fields(summary, sums, selected_fields)

    for f in selected_fields:
        if f == F_AVERAGE_REACH:
            if posts:
                total_reach = sum(as_number(accessor.get_value(p, F_REACH)) for p in posts)
                summary[f] = int(round_half_up(total_reach / len(posts)))
            else:
                summary[f] = 0
        elif f == F_POST_COUNT:
            summary[f] = len(posts)
        elif f == F_POSTS_PER_DAY:
            summary[f] = posts_per_day(posts, accessor)
    return summary


def aggregate_by_account(records, selected_fields, accessor) -> list[dict]:
    """One summary per unique account id, in first-seen order (callers sort)."""
    if not records or not selected_fields:
        return []
    return [
        summarize_account(account_id, posts, selected_fields, accessor)
        for account_id, posts in group_by_account(records, accessor).values()
    ]


def compute_total_row(records, selected_fields, accessor) -> dict:
    """Totals across all records, summed from the records rather than the summaries.

    Fields in ``TOTAL_EXCLUDED_FIELDS`` are left out.
    """
    records = records or []
    row = {F_ACCOUNT_ID: None, F_ACCOUNT_NAME: TOTAL_ROW_LABEL, F_ACCOUNT_USERNAME: None}
    summable = [f for f in SUMMABLE_FIELDS if f in selected_fields or f in BASE_METRICS]
    sums = _sum_fields(records, summable, accessor)
    fields = [f for f in selected_fields if f not in TOTAL_EXCLUDED_FIELDS]
    _emit_fields(row, sums, fields)
    if F_POST_COUNT in fields:
        row[F_POST_COUNT] = len(records)
    return row


def aggregate_by_post_type(records, accessor, selected_account=ALL_ACCOUNTS) -> list[dict]:
    """Per-post-type count, share and metric means/sums.

    ``is_reliable`` flags groups with at least MIN_POSTS_FOR_RELIABLE_STATS
    posts; filtering on it is left to the caller.
    """
    if not records:
        return []
    if selected_account and selected_account != ALL_ACCOUNTS:
        records = [r for r in records if accessor.get_value(r, F_ACCOUNT_NAME) == selected_account]
    if not records:
        return []

    groups = {}
    for record in records:
        post_type = accessor.get_value(record, F_POST_TYPE) or UNKNOWN_POST_TYPE
        groups.setdefault(post_type, []).append(record)

    result = []
    for post_type, posts in groups.items():
        count = len(posts)
        row = {
            F_POST_TYPE: post_type,
            F_POST_COUNT: count,
            "percentage": count / len(records) * 100,
            "is_reliable": count >= MIN_POSTS_FOR_RELIABLE_STATS,
        }
        for metric in POST_TYPE_METRICS:
            values = [accessor.get_value(p, metric) for p in posts]
            numbers = [as_number(v) for v in values if is_numeric(v)]
            row[metric] = sum(numbers) / len(numbers) if numbers else 0
            row[f"{metric}_sum"] = sum(numbers)
        result.append(row)
    return result


def compute_date_range(records, accessor) -> dict:
    dates = [d for d in (accessor.publish_date(r) for r in records) if d is not None]
    if not dates:
        return {"start_date": None, "end_date": None}
    return {"start_date": min(dates).isoformat(), "end_date": max(dates).isoformat()}


def count_unique_accounts(records, accessor) -> int:
    return len({
        str(v) for v in (accessor.get_value(r, F_ACCOUNT_ID) for r in records)
        if v is not None and v != ""
    })


def unique_account_names(records, accessor) -> list[str]:
    names = {accessor.get_value(r, F_ACCOUNT_NAME) for r in records}
    return sorted(str(n) for n in names if n)
