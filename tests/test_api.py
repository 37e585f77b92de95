from typing import Any

import pytest
import requests

from rec_league import api
from rec_league.api import SupabaseClient
from rec_league.errors import StorageUnavailable


class _Response:
    def __init__(self, status_code: int, payload: Any = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.content = b"" if payload is None else b"x"
        self.text = "" if payload is None else str(payload)

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)  # type: ignore[arg-type]

    def json(self) -> Any:
        return self._payload


class _Session:
    def __init__(self, responses: list[Any]) -> None:
        self.headers: dict[str, str] = {}
        self.responses = responses
        self.calls: list[dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> _Response:
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _client(responses: list[Any], max_retries: int = 3, page_size: int = 1000) -> tuple[SupabaseClient, _Session]:
    session = _Session(responses)
    client = SupabaseClient(
        base_url="https://league.supabase.co/",
        api_key="anon-key",
        max_retries=max_retries,
        page_size=page_size,
        session=session,  # type: ignore[arg-type]
    )
    return client, session


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(api.time, "sleep", lambda _: None)


def test_select_builds_postgrest_query() -> None:
    client, session = _client([_Response(200, [{"game_id": "4"}])])

    rows = client.select("scores", order="date.desc", game_id="4")

    assert rows == [{"game_id": "4"}]
    call = session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://league.supabase.co/rest/v1/scores"
    assert call["params"] == {
        "select": "*",
        "order": "date.desc",
        "game_id": "eq.4",
        "limit": 1000,
        "offset": 0,
    }
    assert session.headers["apikey"] == "anon-key"
    assert session.headers["Authorization"] == "Bearer anon-key"


def test_upsert_uses_merge_duplicates() -> None:
    client, session = _client([_Response(201)])

    client.upsert("scores", [{"game_id": "4"}], on_conflict="game_id")

    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["params"] == {"on_conflict": "game_id"}
    assert call["json"] == [{"game_id": "4"}]
    assert "merge-duplicates" in call["headers"]["Prefer"]


def test_upsert_without_rows_makes_no_request() -> None:
    client, session = _client([])
    client.upsert("scores", [], on_conflict="game_id")
    assert session.calls == []


def test_server_errors_are_retried() -> None:
    client, session = _client([_Response(503, "busy"), _Response(200, [])])
    assert client.select("scores") == []
    assert len(session.calls) == 2


def test_network_failure_surfaces_as_storage_unavailable() -> None:
    client, _ = _client([requests.ConnectionError("down")] * 2, max_retries=2)
    with pytest.raises(StorageUnavailable):
        client.select("scores")


def test_client_errors_are_not_retried() -> None:
    client, session = _client([_Response(401, "Unauthorized")])
    with pytest.raises(StorageUnavailable, match="Unauthorized"):
        client.select("scores")
    assert len(session.calls) == 1


def test_delete_requires_filter() -> None:
    client, _ = _client([])
    with pytest.raises(ValueError):
        client.delete("recaps")


def test_delete_counts_removed_rows() -> None:
    client, session = _client([_Response(200, [{"game_id": "4"}])])
    assert client.delete("recaps", game_id="4") == 1
    assert session.calls[0]["params"] == {"game_id": "eq.4"}


def test_missing_key_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    with pytest.raises(RuntimeError, match="SUPABASE_ANON_KEY"):
        SupabaseClient(base_url="https://league.supabase.co", api_key="")


def test_select_reads_every_page() -> None:
    client, session = _client(
        [
            _Response(200, [{"game_id": "1"}, {"game_id": "2"}]),
            _Response(200, [{"game_id": "3"}, {"game_id": "4"}]),
            _Response(200, [{"game_id": "5"}]),
        ],
        page_size=2,
    )

    rows = client.select("scores", order="date.desc")

    assert [r["game_id"] for r in rows] == ["1", "2", "3", "4", "5"]
    assert [c["params"]["offset"] for c in session.calls] == [0, 2, 4]
    assert all(c["params"]["limit"] == 2 for c in session.calls)


def test_select_stops_on_empty_page() -> None:
    client, session = _client([_Response(200, [{"game_id": "1"}]), _Response(200, [])], page_size=1)
    assert client.select("scores") == [{"game_id": "1"}]
    assert len(session.calls) == 2
