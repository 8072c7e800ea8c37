import logging

from .errors import ValidationError

logger = logging.getLogger(__name__)

def check_required_columns(headers: list[str], resolver, force: bool = False) -> dict:
    """Gate an import on the presence of the required columns.

    Args:
        headers: header row of the uploaded CSV.
        resolver: ColumnMappingResolver holding the default required set.
        force: continue even when columns are missing ("continue anyway").

    Returns:
        dict: the validation result from the resolver.

    Raises:
        ValidationError: if columns are missing and ``force`` is False.
    """
    result = resolver.validate_required_columns(headers)
    if not result["is_valid"]:
        if not force:
            raise ValidationError(result["missing_columns"])
        logger.warning(
            "Importing without %d required columns: %s",
            len(result["missing_columns"]),
            [c["external"] for c in result["missing_columns"]],
        )
    return result
