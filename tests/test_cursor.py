import json

import pytest

from arango_client import (
    AqlQuery,
    ConfigError,
    Connection,
    CursorError,
    CursorState,
    DatabaseNotFound,
    ParseError,
    QueryError,
    TransportError,
)
from arango_client.transport.base import TransportResponse

URL = "http://host"
CURSOR_URL = f"{URL}/_db/app/_api/cursor"


def reply(status: int, payload: object) -> TransportResponse:
    return TransportResponse(status_code=status, content=json.dumps(payload))


class DummyTransport:
    def __init__(self, *responses: TransportResponse | Exception) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, str, str | None]] = []

    def request(self, method: str, url: str, body=None, headers=None) -> TransportResponse:
        self.calls.append((method, url, body))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:  # pragma: no cover - not needed
        pass

    def methods(self) -> list[str]:
        return [method for method, _, _ in self.calls]


def database(*responses: TransportResponse | Exception):
    transport = DummyTransport(*responses)
    conn = Connection.establish_without_auth(URL + "/", transport=transport)
    return conn.db("app"), transport


def test_single_batch_query_yields_documents_then_done() -> None:
    db, transport = database(reply(201, {"result": [1], "hasMore": False}))
    cursor = db.execute_query("RETURN 1", {}, batch_size=1)

    method, url, body = transport.calls[0]
    assert (method, url) == ("POST", CURSOR_URL)
    assert json.loads(body) == {"query": "RETURN 1", "bindVars": {}, "batchSize": 1}

    assert cursor.next_batch() == [1]
    assert cursor.next_batch() is None
    assert cursor.state is CursorState.EXHAUSTED
    assert len(transport.calls) == 1


def test_two_page_query_drains_in_order() -> None:
    db, transport = database(
        reply(201, {"result": [1, 2], "hasMore": True, "id": "c1"}),
        reply(200, {"result": [3], "hasMore": False, "id": "c1"}),
    )
    cursor = db.execute_query("FOR i IN 1..3 RETURN i", batch_size=2)

    assert list(cursor) == [1, 2, 3]
    assert transport.methods() == ["POST", "PUT"]
    assert transport.calls[1][1] == f"{CURSOR_URL}/c1"

    cursor.close()
    assert transport.methods() == ["POST", "PUT"]
    assert cursor.state is CursorState.EXHAUSTED


def test_one_fetch_per_batch_boundary() -> None:
    db, transport = database(
        reply(201, {"result": [{"n": 1}], "hasMore": True, "id": "c9"}),
        reply(200, {"result": [{"n": 2}], "hasMore": True, "id": "c9"}),
        reply(200, {"result": [{"n": 3}], "hasMore": False, "id": "c9"}),
    )
    cursor = db.execute_query("FOR d IN docs RETURN d", batch_size=1)

    batches = []
    while (batch := cursor.next_batch()) is not None:
        batches.append(batch)

    assert batches == [[{"n": 1}], [{"n": 2}], [{"n": 3}]]
    assert transport.methods().count("PUT") == 2
    assert cursor.batches_fetched == 3
    assert cursor.consumed == 3


def test_iteration_is_lazy() -> None:
    db, transport = database(
        reply(201, {"result": [1, 2], "hasMore": True, "id": "c1"}),
        reply(200, {"result": [3], "hasMore": False}),
    )
    cursor = db.execute_query("FOR i IN 1..3 RETURN i", batch_size=2)
    iterator = iter(cursor)
    assert next(iterator) == 1
    assert next(iterator) == 2
    assert transport.methods() == ["POST"]
    assert next(iterator) == 3
    assert transport.methods() == ["POST", "PUT"]


def test_close_before_exhaustion_deletes_once() -> None:
    db, transport = database(
        reply(201, {"result": [1, 2], "hasMore": True, "id": "c1"}),
        reply(202, {"id": "c1", "error": False, "code": 202}),
    )
    cursor = db.execute_query("FOR i IN 1..10 RETURN i", batch_size=2)
    assert next(iter(cursor)) == 1

    cursor.close()
    cursor.close()

    assert transport.methods() == ["POST", "DELETE"]
    assert transport.calls[1][1] == f"{CURSOR_URL}/c1"
    assert cursor.state is CursorState.CLOSED
    assert cursor.next_batch() is None
    assert list(cursor) == []


def test_close_swallows_release_errors() -> None:
    db, transport = database(
        reply(201, {"result": [1], "hasMore": True, "id": "c1"}),
        TransportError("connection reset"),
    )
    cursor = db.execute_query("FOR i IN 1..10 RETURN i", batch_size=1)
    cursor.close()
    assert cursor.state is CursorState.CLOSED
    assert transport.methods() == ["POST", "DELETE"]


def test_close_without_id_sends_nothing() -> None:
    db, transport = database(reply(201, {"result": [1, 2], "hasMore": False}))
    cursor = db.execute_query("RETURN [1, 2]")
    cursor.close()
    assert transport.methods() == ["POST"]
    assert cursor.state is CursorState.CLOSED


def test_context_manager_releases_cursor() -> None:
    db, transport = database(
        reply(201, {"result": [1], "hasMore": True, "id": "c1"}),
        reply(202, {"id": "c1"}),
    )
    with db.execute_query("FOR i IN 1..10 RETURN i", batch_size=1) as cursor:
        assert cursor.next_batch() == [1]
    assert transport.methods() == ["POST", "DELETE"]


def test_failed_fetch_is_terminal_and_keeps_yielded_documents() -> None:
    db, transport = database(
        reply(201, {"result": [1, 2], "hasMore": True, "id": "c1"}),
        reply(404, {"error": True, "errorMessage": "cursor not found", "code": 404, "errorNum": 1600}),
        reply(404, {"error": True, "errorMessage": "cursor not found", "code": 404, "errorNum": 1600}),
    )
    cursor = db.execute_query("FOR i IN 1..10 RETURN i", batch_size=2)

    received = []
    with pytest.raises(CursorError) as info:
        for document in cursor:
            received.append(document)

    assert received == [1, 2]
    assert cursor.state is CursorState.FAILED
    assert cursor.error is info.value
    assert info.value.cursor_id == "c1"
    with pytest.raises(CursorError):
        cursor.next_batch()
    with pytest.raises(CursorError):
        next(cursor)
    assert transport.methods() == ["POST", "PUT"]

    cursor.close()
    assert transport.methods() == ["POST", "PUT", "DELETE"]
    assert cursor.state is CursorState.FAILED


def test_transport_failure_mid_pagination_becomes_cursor_error() -> None:
    db, _ = database(
        reply(201, {"result": [1], "hasMore": True, "id": "c1"}),
        TransportError("connection reset"),
    )
    cursor = db.execute_query("FOR i IN 1..10 RETURN i", batch_size=1)
    assert cursor.next_batch() == [1]
    with pytest.raises(CursorError) as info:
        cursor.next_batch()
    assert isinstance(info.value.__cause__, TransportError)


def test_close_after_failed_fetch_releases_cursor_once() -> None:
    db, transport = database(
        reply(201, {"result": [1], "hasMore": True, "id": "c1"}),
        TransportError("connection reset"),
        reply(202, {"id": "c1", "error": False, "code": 202}),
    )
    cursor = db.execute_query("FOR i IN 1..10 RETURN i", batch_size=1)
    assert cursor.next_batch() == [1]
    with pytest.raises(CursorError) as info:
        cursor.next_batch()

    cursor.close()
    cursor.close()

    assert transport.methods() == ["POST", "PUT", "DELETE"]
    assert transport.calls[2][1] == f"{CURSOR_URL}/c1"
    assert cursor.state is CursorState.FAILED
    assert cursor.error is info.value
    with pytest.raises(CursorError):
        cursor.next_batch()


def test_query_error_carries_server_details() -> None:
    db, _ = database(
        reply(400, {"error": True, "errorMessage": "syntax error, unexpected identifier", "code": 400, "errorNum": 1501})
    )
    with pytest.raises(QueryError) as info:
        db.execute_query("RETRUN 1")
    assert info.value.code == 400
    assert info.value.error_num == 1501
    assert "syntax error" in info.value.error_message


def test_forbidden_query_is_query_error() -> None:
    db, _ = database(reply(403, {"errorMessage": "forbidden", "code": 403, "errorNum": 11}))
    with pytest.raises(QueryError) as info:
        db.execute_query("FOR d IN secret RETURN d")
    assert info.value.status_code == 403
    assert info.value.error_num == 11
    assert info.value.error_message == "forbidden"


def test_error_body_on_success_status_is_query_error() -> None:
    db, _ = database(reply(201, {"error": True, "errorMessage": "boom", "code": 400, "errorNum": 1501}))
    with pytest.raises(QueryError) as info:
        db.execute_query("RETURN 1")
    assert info.value.code == 400
    assert info.value.error_num == 1501


def test_error_body_on_next_batch_fails_cursor() -> None:
    db, transport = database(
        reply(201, {"result": [1], "hasMore": True, "id": "c1"}),
        reply(200, {"error": True, "errorMessage": "cursor expired", "code": 200, "errorNum": 1600}),
    )
    cursor = db.execute_query("FOR i IN 1..10 RETURN i", batch_size=1)
    assert cursor.next_batch() == [1]
    with pytest.raises(CursorError) as info:
        cursor.next_batch()
    assert info.value.context.error_num == 1600
    assert cursor.state is CursorState.FAILED
    assert transport.methods() == ["POST", "PUT"]


def test_more_batches_without_id_is_parse_error() -> None:
    db, _ = database(reply(201, {"result": [1], "hasMore": True}))
    with pytest.raises(ParseError):
        db.execute_query("RETURN 1")


def test_aql_query_options_are_serialized() -> None:
    db, transport = database(reply(201, {"result": [], "hasMore": False, "count": 0, "extra": {"stats": {}}}))
    query = AqlQuery("FOR u IN users FILTER u.age > @age RETURN u", {"age": 21}, batch_size=10, count=True, ttl=30)
    cursor = db.execute_query(query)

    assert json.loads(transport.calls[0][2]) == {
        "query": "FOR u IN users FILTER u.age > @age RETURN u",
        "bindVars": {"age": 21},
        "batchSize": 10,
        "count": True,
        "ttl": 30,
    }
    assert cursor.count == 0
    assert cursor.extra == {"stats": {}}
    assert list(cursor) == []
    assert cursor.state is CursorState.EXHAUSTED


def test_invalid_query_arguments_are_config_errors() -> None:
    db, transport = database()
    with pytest.raises(ConfigError):
        db.execute_query("RETURN 1", batch_size=0)
    with pytest.raises(ConfigError):
        db.execute_query("   ")
    with pytest.raises(ConfigError):
        db.execute_query(AqlQuery("RETURN 1"), {"x": 1})
    assert transport.calls == []


def test_aql_helpers_drain_cursors() -> None:
    db, transport = database(
        reply(201, {"result": ["a"], "hasMore": True, "id": "c1"}),
        reply(200, {"result": ["b"], "hasMore": False}),
        reply(201, {"result": [{"name": "Ann"}], "hasMore": False}),
    )
    assert db.aql_str("FOR d IN docs RETURN d.k") == ["a", "b"]
    assert db.aql_bind_vars("FOR u IN users FILTER u.name == @n RETURN u", {"n": "Ann"}) == [{"name": "Ann"}]
    assert json.loads(transport.calls[2][2])["bindVars"] == {"n": "Ann"}


def test_aql_safe_wraps_errors() -> None:
    db, _ = database(reply(400, {"error": True, "errorMessage": "bad", "code": 400}))
    result = db.aql_safe("RETURN")
    assert result.ok is False
    assert isinstance(result.error, QueryError)


def test_database_handle_is_built_without_network() -> None:
    transport = DummyTransport()
    conn = Connection.establish_without_auth(URL, transport=transport)
    db = conn.db("my db")
    assert db.name == "my db"
    assert db.url("/_api/cursor") == f"{URL}/_db/my%20db/_api/cursor"
    assert transport.calls == []
    with pytest.raises(ConfigError):
        conn.db("")


def test_database_info() -> None:
    db, transport = database(
        reply(200, {"result": {"id": "123", "name": "app", "path": "/data/app", "isSystem": False}})
    )
    info = db.info()
    assert info.id == "123"
    assert info.name == "app"
    assert info.is_system is False
    assert transport.calls[0][:2] == ("GET", f"{URL}/_db/app/_api/database/current")


def test_database_info_missing_database() -> None:
    db, _ = database(reply(404, {"error": True, "errorMessage": "database not found", "code": 404, "errorNum": 1228}))
    with pytest.raises(DatabaseNotFound):
        db.info()
