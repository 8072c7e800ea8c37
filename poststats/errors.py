class PostStatsError(Exception):
    """Base class for errors raised by the import and aggregation core."""


class ParseError(PostStatsError):
    """The uploaded CSV could not be parsed."""


class EmptyDataError(ParseError):
    """The uploaded CSV parsed but holds no data rows."""


class ValidationError(PostStatsError):
    """Required columns are missing from the uploaded headers.

    Non-fatal: the caller may re-run the import with ``force=True``.
    """

    def __init__(self, missing_columns: list[dict]):
        self.missing_columns = missing_columns
        names = ", ".join(c["external"] for c in missing_columns)
        super().__init__(f"Missing required columns: {names}")


class PersistenceError(PostStatsError):
    """The backing store rejected a write. Nothing was committed."""


class MappingConflictError(PostStatsError):
    """A column mapping edit was rejected before any change was made."""
