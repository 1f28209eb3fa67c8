import pytest

from couchbridge.clients.couch.models.CouchDBError import CouchDBError, CouchResponseError

pytestmark = pytest.mark.unit


def test_error_is_parsed_from_couch_body() -> None:
    err = CouchDBError.from_response(404, b'{"error":"not_found","reason":"Database does not exist."}', url="http://couch.test/db")

    assert err.status_code == 404
    assert err.error == "not_found"
    assert err.reason == "Database does not exist."
    assert err.url == "http://couch.test/db"
    assert str(err) == "CouchDB request failed with status 404: not_found (Database does not exist.)"


def test_non_json_body_is_kept_as_reason() -> None:
    err = CouchDBError.from_response(502, b"Bad Gateway\n")

    assert err.error == "unknown_error"
    assert err.reason == "Bad Gateway"
    assert err.url is None


def test_empty_body_gives_plain_message() -> None:
    err = CouchDBError.from_response(500, "")

    assert str(err) == "CouchDB request failed with status 500: unknown_error"


def test_response_error_is_a_value_error() -> None:
    assert issubclass(CouchResponseError, ValueError)
