import re

from poststats.constants import (
    ALTERNATIVE_NAMES,
    ENGAGEMENT_EXTENDED_PARTS,
    ENGAGEMENT_PARTS,
    F_DATE,
    F_ENGAGEMENT,
    F_ENGAGEMENT_EXTENDED,
    F_PUBLISH_TIME,
    IDENTIFIER_FIELDS,
    IDENTITY_HEADER_VARIANTS,
)
from .mapping import normalize
from .utils import parse_date

_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")

DERIVED_FIELDS = {
    F_ENGAGEMENT: ENGAGEMENT_PARTS,
    F_ENGAGEMENT_EXTENDED: ENGAGEMENT_EXTENDED_PARTS,
}


def safe_parse_value(value):
    """Coerce numeric-looking strings to int/float; other values pass through."""
    if value is None:
        return None
    if isinstance(value, float) and value != value:  # NaN from pandas
        return None
    if isinstance(value, str):
        text = value.strip()
        if _NUMBER_RE.match(text):
            if re.fullmatch(r"[+-]?\d+", text):
                return int(text)
            return float(text)
    return value


def parse_field_value(field: str, value):
    """Like safe_parse_value, but identifier fields keep their text."""
    if field in IDENTIFIER_FIELDS:
        if isinstance(value, float) and value != value:
            return None
        return value
    return safe_parse_value(value)


def as_number(value) -> int | float:
    """Numeric value for summing; None and non-numeric text count as 0."""
    value = safe_parse_value(value)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    return 0


def is_numeric(value) -> bool:
    value = safe_parse_value(value)
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class FieldValueAccessor:
    def __init__(self, resolver):
        self.resolver = resolver
        self.strategies = [
            self._derived,
            self._direct,
            self._identity_variants,
            self._inverse_mapping,
            self._alternative_names,
            self._normalized_scan,
        ]

    def get_value(self, record, field: str):
        if not record or not field:
            return None
        for strategy in self.strategies:
            value = strategy(record, field)
            if value is not None:
                return value
        return None

    def get_field_value(self, record, field: str):
        """Generic lookup without the identity and derived special cases."""
        if not record:
            return None
        for strategy in (self._direct, self._inverse_mapping, self._alternative_names, self._normalized_scan):
            value = strategy(record, field)
            if value is not None:
                return value
        return None

    def publish_date(self, record):
        """Calendar date the post was published, or None."""
        raw = self.get_value(record, F_PUBLISH_TIME)
        if raw is None:
            raw = self.get_value(record, F_DATE)
        return parse_date(raw)

    # -- strategies --

    def _derived(self, record, field):
        parts = DERIVED_FIELDS.get(field)
        if parts is None:
            return None
        # Never read from the record: the sum must always match its parts
        return sum(as_number(self.get_field_value(record, part)) for part in parts)

    def _direct(self, record, field):
        if field in DERIVED_FIELDS:
            return None
        return parse_field_value(field, record.get(field))

    def _identity_variants(self, record, field):
        for key in IDENTITY_HEADER_VARIANTS.get(field, []):
            value = parse_field_value(field, record.get(key))
            if value is not None:
                return value
        return None

    def _inverse_mapping(self, record, field):
        if field in DERIVED_FIELDS:
            return None
        external = self.resolver.get_inverse_mapping().get(field)
        if external is None:
            return None
        return parse_field_value(field, record.get(external))

    def _alternative_names(self, record, field):
        for alt in ALTERNATIVE_NAMES.get(field, []):
            value = parse_field_value(field, record.get(alt))
            if value is not None:
                return value
        return None

    def _normalized_scan(self, record, field):
        if field in DERIVED_FIELDS:
            return None
        wanted = normalize(field)
        for key, value in record.items():
            if normalize(key) == wanted:
                value = parse_field_value(field, value)
                if value is not None:
                    return value
        return None
