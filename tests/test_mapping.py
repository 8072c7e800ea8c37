import pytest

from poststats.constants import DEFAULT_MAPPINGS, KEY_COLUMN_MAPPINGS
from poststats.errors import MappingConflictError, PersistenceError
from poststats.mapping import ColumnMappingResolver, MappingCache, normalize
from poststats.storage import KeyValueStore


@pytest.mark.parametrize("raw, expected", [
    ("  Gilla-markeringar ", "gilla-markeringar"),
    ("Sparade\t\tobjekt", "sparade objekt"),
    ("\ufeffPublicerings-id", "publicerings-id"),
    ("Konto\u200b-id", "konto-id"),
    ("A \u200b B", "a b"),
    (None, ""),
    (42, "42"),
])
def test_normalize(raw, expected):
    assert normalize(raw) == expected


@pytest.mark.parametrize("raw", [
    "  Mixed   CASE  ", "\u200b\ufeff x \u200c y ", "Räckvidd\n", "", " \u200d ", "İstanbul",
])
def test_normalize_is_idempotent(raw):
    assert normalize(normalize(raw)) == normalize(raw)


def test_get_mapping_defaults_when_nothing_saved(resolver):
    assert resolver.get_mapping() == DEFAULT_MAPPINGS


def test_get_mapping_returns_copy(resolver):
    resolver.get_mapping()["Visningar"] = "likes"
    assert resolver.get_mapping()["Visningar"] == "views"


def test_save_and_read_back(store, resolver):
    custom = {"Likes": "likes", "Post ID": "post_id", "Account ID": "account_id"}
    resolver.save_mapping(custom)
    assert resolver.get_mapping() == custom
    # a fresh resolver on the same store sees the saved mapping
    assert ColumnMappingResolver(store).get_mapping() == custom


def test_cache_served_until_cleared(store, resolver):
    assert resolver.get_mapping() == DEFAULT_MAPPINGS
    store.set(KEY_COLUMN_MAPPINGS, {"Likes": "likes"})
    assert resolver.get_mapping() == DEFAULT_MAPPINGS
    resolver.clear_cache()
    assert resolver.get_mapping() == {"Likes": "likes"}


def test_cache_object_is_shared(store):
    cache = MappingCache()
    first = ColumnMappingResolver(store, cache)
    second = ColumnMappingResolver(store, cache)
    first.save_mapping({"Likes": "likes"})
    assert second.get_mapping() == {"Likes": "likes"}


def test_save_rejects_empty_external_name(resolver):
    before = resolver.get_mapping()
    with pytest.raises(MappingConflictError):
        resolver.save_mapping({"  ": "likes", "Comments": "comments"})
    assert resolver.get_mapping() == before


def test_save_failure_keeps_previous_mapping(session_factory):
    small_store = KeyValueStore(session_factory, value_limit=64)
    resolver = ColumnMappingResolver(small_store)
    resolver.save_mapping({"Likes": "likes"})
    big = {f"Column {i}": "likes" for i in range(50)}
    with pytest.raises(PersistenceError):
        resolver.save_mapping(big)
    assert resolver.get_mapping() == {"Likes": "likes"}
    resolver.clear_cache()
    assert resolver.get_mapping() == {"Likes": "likes"}


def test_inverse_mapping_last_wins(resolver):
    resolver.save_mapping({"Likes": "likes", "Gilla": "likes", "Comments": "comments"})
    inverse = resolver.get_inverse_mapping()
    assert inverse["likes"] == "Gilla"
    assert inverse["comments"] == "Comments"


def test_validate_all_required_present(resolver):
    headers = [f"  {h.upper()} " for h in DEFAULT_MAPPINGS]
    result = resolver.validate_required_columns(headers)
    assert result == {"is_valid": True, "missing_columns": []}


def test_validate_missing_permalink(resolver):
    headers = [h for h in DEFAULT_MAPPINGS if h != "Permalänk"]
    result = resolver.validate_required_columns(headers)
    assert result["is_valid"] is False
    assert len(result["missing_columns"]) == 1
    missing = result["missing_columns"][0]
    assert missing["internal"] == "permalink"
    assert missing["external"] == "Permalänk"
    assert missing["display_name"] == "Link"


def test_validate_uses_default_mapping_not_saved_one(resolver):
    resolver.save_mapping({"Likes": "likes"})
    result = resolver.validate_required_columns(["Likes"])
    assert result["is_valid"] is False
    assert len(result["missing_columns"]) == len(DEFAULT_MAPPINGS)


def test_validate_rejects_non_list(resolver):
    assert resolver.validate_required_columns(None) == {"is_valid": False, "missing_columns": []}


def test_find_matching_column_key(resolver):
    assert resolver.find_matching_column_key(" gilla-MARKERINGAR") == "likes"
    assert resolver.find_matching_column_key("Impressions") == "views"
    assert resolver.find_matching_column_key("Something else") is None
    assert resolver.find_matching_column_key("") is None


def test_rename_external_keeps_field_and_position(resolver):
    mapping = resolver.rename_external("Gilla-markeringar", "Likes")
    keys = list(mapping)
    assert "Gilla-markeringar" not in mapping
    assert mapping["Likes"] == "likes"
    assert keys.index("Likes") == list(DEFAULT_MAPPINGS).index("Gilla-markeringar")
    assert resolver.get_mapping() == mapping


def test_rename_external_rejects_blank_name(resolver):
    with pytest.raises(MappingConflictError):
        resolver.rename_external("Gilla-markeringar", "   ")
    assert resolver.get_mapping() == DEFAULT_MAPPINGS


def test_rename_external_rejects_name_owned_by_other_field(resolver):
    with pytest.raises(MappingConflictError):
        resolver.rename_external("Gilla-markeringar", "kommentarer")


def test_rename_external_unknown_name(resolver):
    with pytest.raises(KeyError):
        resolver.rename_external("Nope", "Likes")


def test_reset_mapping(resolver):
    resolver.save_mapping({"Likes": "likes"})
    assert resolver.reset_mapping() == DEFAULT_MAPPINGS
    assert resolver.get_mapping() == DEFAULT_MAPPINGS


def test_get_all_known_names(resolver):
    names = resolver.get_all_known_names("likes")
    assert names[0] == "Gilla-markeringar"
    assert "Likes" in names
    assert len(names) == len(set(names))


def test_seeded_cache_resolves_through_given_mapping(store):
    resolver = ColumnMappingResolver(store, MappingCache({"MyId": "post_id"}))
    assert resolver.get_mapping() == {"MyId": "post_id"}
    assert resolver.get_inverse_mapping() == {"post_id": "MyId"}


def test_mapping_match_is_separate_from_alternatives(resolver):
    assert resolver.match_mapping("Publiceringstid") == "publish_time"
    assert resolver.match_mapping("Impressions") is None
    assert resolver.match_alternative("Impressions") == "views"
