import logging
import re

from sqlalchemy.exc import SQLAlchemyError

from poststats.constants import (
    ALTERNATIVE_NAMES,
    DEFAULT_MAPPINGS,
    DISPLAY_NAMES,
    KEY_COLUMN_MAPPINGS,
)
from .errors import MappingConflictError

logger = logging.getLogger(__name__)

_INVISIBLE_RE = re.compile("[\u200b-\u200d\ufeff]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize(text) -> str:
    """Normalize a header for comparison.

    Invisible characters are removed before whitespace handling so that the
    result is stable under repeated application.
    """
    if text is None:
        return ""
    text = _INVISIBLE_RE.sub("", str(text))
    return _WHITESPACE_RE.sub(" ", text.strip().lower())


class MappingCache:
    """In-memory copy of the current mapping and its inverse.

    A cache seeded with ``mapping`` resolves through it instead of the stored one.
    """

    def __init__(self, mapping: dict[str, str] | None = None):
        self.mapping: dict[str, str] | None = dict(mapping) if mapping is not None else None
        self.inverse: dict[str, str] | None = None

    def clear(self) -> None:
        self.mapping = None
        self.inverse = None


class ColumnMappingResolver:
    def __init__(self, store, cache: MappingCache | None = None):
        self.store = store
        self.cache = cache or MappingCache()

    def get_mapping(self) -> dict[str, str]:
        """Return the current external -> internal mapping (a copy)."""
        if self.cache.mapping is None:
            self.cache.mapping = self._load_mapping()
        return dict(self.cache.mapping)

    def _load_mapping(self) -> dict[str, str]:
        try:
            stored = self.store.get(KEY_COLUMN_MAPPINGS)
        except (SQLAlchemyError, ValueError) as exc:
            logger.warning("Could not read column mappings, using defaults: %s", exc)
            stored = None
        if stored:
            return dict(stored)
        return dict(DEFAULT_MAPPINGS)

    def get_inverse_mapping(self) -> dict[str, str]:
        """Return internal -> external. With many-to-one entries the last external name wins."""
        if self.cache.inverse is None:
            if self.cache.mapping is None:
                self.cache.mapping = self._load_mapping()
            self.cache.inverse = {internal: external for external, internal in self.cache.mapping.items()}
        return dict(self.cache.inverse)

    def clear_cache(self) -> None:
        self.cache.clear()

    def save_mapping(self, new_mapping: dict[str, str]) -> dict[str, str]:
        """Persist ``new_mapping`` and drop the caches.

        Raises:
            MappingConflictError: an external name or internal field is empty.
            PersistenceError: the store rejected the write; the cache is left as it was.
        """
        cleaned = {}
        for external, internal in new_mapping.items():
            if not isinstance(external, str) or not external.strip():
                raise MappingConflictError("Column name cannot be empty")
            if not isinstance(internal, str) or not internal.strip():
                raise MappingConflictError(f"Column '{external}' has no internal field")
            cleaned[external] = internal
        self.store.set(KEY_COLUMN_MAPPINGS, cleaned, allow_blob=False)
        self.clear_cache()
        logger.info("Saved column mappings (%d entries)", len(cleaned))
        return dict(cleaned)

    def reset_mapping(self) -> dict[str, str]:
        return self.save_mapping(dict(DEFAULT_MAPPINGS))

    def rename_external(self, old_name: str, new_name: str) -> dict[str, str]:
        """Re-key one mapping entry, keeping its internal field and position.

        Raises:
            MappingConflictError: ``new_name`` is blank, or already maps to a different field.
            KeyError: ``old_name`` is not in the current mapping.
        """
        if not new_name or not new_name.strip():
            raise MappingConflictError("Column name cannot be empty")
        mapping = self.get_mapping()
        if old_name not in mapping:
            raise KeyError(old_name)
        internal = mapping[old_name]
        for external, other in mapping.items():
            if external != old_name and normalize(external) == normalize(new_name) and other != internal:
                raise MappingConflictError(f"'{new_name}' is already mapped to '{other}'")
        renamed = {}
        for external, value in mapping.items():
            if external == old_name:
                renamed[new_name] = internal
            elif normalize(external) != normalize(new_name):
                renamed[external] = value
        return self.save_mapping(renamed)

    def validate_required_columns(self, headers) -> dict:
        """Check ``headers`` against the built-in default mapping.

        Returns:
            dict: ``{"is_valid": bool, "missing_columns": [{"external", "internal", "display_name"}]}``
        """
        if not isinstance(headers, (list, tuple)):
            logger.error("Invalid CSV headers: %r", headers)
            return {"is_valid": False, "missing_columns": []}
        present = {normalize(h) for h in headers}
        missing = [
            {
                "external": external,
                "internal": internal,
                "display_name": DISPLAY_NAMES.get(internal, internal),
            }
            for external, internal in DEFAULT_MAPPINGS.items()
            if normalize(external) not in present
        ]
        return {"is_valid": not missing, "missing_columns": missing}

    def find_matching_column_key(self, column_name, mapping: dict[str, str] | None = None) -> str | None:
        """Return the internal field for a CSV header, or None if nothing matches."""
        if not column_name:
            return None
        return self.match_mapping(column_name, mapping) or self.match_alternative(column_name)

    def match_mapping(self, column_name, mapping: dict[str, str] | None = None) -> str | None:
        if mapping is None:
            mapping = self.get_mapping()
        wanted = normalize(column_name)
        for external, internal in mapping.items():
            if normalize(external) == wanted:
                return internal
        return None

    def match_alternative(self, column_name) -> str | None:
        wanted = normalize(column_name)
        for internal, alternatives in ALTERNATIVE_NAMES.items():
            if any(normalize(alt) == wanted for alt in alternatives):
                return internal
        return None

    def get_all_known_names(self, internal_name: str) -> list[str]:
        names = []
        canonical = self.get_inverse_mapping().get(internal_name)
        if canonical:
            names.append(canonical)
        for alt in ALTERNATIVE_NAMES.get(internal_name, []):
            if alt not in names:
                names.append(alt)
        return names
