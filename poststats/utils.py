import math
from datetime import date, datetime

import pandas as pd
from sqlalchemy.inspection import inspect

def sa_to_dict(obj, exclude=None, prefix=None):
    """Convert a SQLAlchemy ORM object to a plain dict.

    Args:
        obj: SQLAlchemy ORM instance to convert.
        exclude: Optional set/list of attribute names to exclude from the dict.
        prefix: Optional string to prefix to each dict key.

    Returns:
        dict: Mapping of column attribute name -> value for the given ORM object.
    """
    exclude = exclude or set()
    prefix = prefix or ""
    return {
        prefix + c.key: getattr(obj, c.key)
        for c in inspect(obj).mapper.column_attrs
        if c.key not in exclude
    }


def parse_date(value) -> date | None:
    """Parse a publish-time value into a calendar date.

    Only strings and datetime objects are considered; numbers are never read
    as epoch offsets. Unparseable input yields None.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    ts = pd.to_datetime(value.strip(), errors="coerce", utc=True)
    if pd.isna(ts):
        return None
    return ts.date()


def round_half_up(value: float, digits: int = 0) -> float:
    # round() uses banker's rounding; rates shown to users round .5 upwards
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
