import pytest

pytestmark = pytest.mark.unit


def test_string_value_is_stripped(helper_config, monkeypatch) -> None:
    monkeypatch.setenv("COUCH_COUCHDB_DATABASE", "  inventory ")
    assert helper_config.get_string_val("couch_couchdb_database") == "inventory"


def test_missing_required_value_raises(helper_config) -> None:
    with pytest.raises(ValueError, match="COUCH_COUCHDB_BASE_URL"):
        helper_config.get_string_val("COUCH_COUCHDB_BASE_URL")


def test_empty_value_falls_back_to_default(helper_config, monkeypatch) -> None:
    monkeypatch.setenv("COUCH_COUCHDB_USERNAME", "")
    assert helper_config.get_string_val("COUCH_COUCHDB_USERNAME", default="") == ""


@pytest.mark.parametrize("raw, expected", [("12", 12), ("2.5", 2.5)])
def test_number_value(helper_config, monkeypatch, raw, expected) -> None:
    monkeypatch.setenv("COUCH_TIMEOUT", raw)
    assert helper_config.get_number_val("COUCH_TIMEOUT") == expected


def test_invalid_number_raises(helper_config, monkeypatch) -> None:
    monkeypatch.setenv("COUCH_TIMEOUT", "soon")
    with pytest.raises(ValueError, match="not a valid number"):
        helper_config.get_number_val("COUCH_TIMEOUT", default=30)
