import pytest
import requests

from fintrack.providers import http
from fintrack.providers.http import ProviderError, fetch_json, map_status_to_code


class _Response:
    def __init__(self, status_code: int, text: str) -> None:
        self.status_code = status_code
        self.text = text
        self.ok = 200 <= status_code < 400


class _Session:
    def __init__(self, responses: list[object]) -> None:
        self.responses = list(responses)
        self.calls = 0

    def get(self, url, params=None, timeout=None, headers=None):
        self.calls += 1
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def test_map_status_to_code() -> None:
    assert map_status_to_code(401) == "AUTH"
    assert map_status_to_code(403) == "AUTH"
    assert map_status_to_code(404) == "NOT_FOUND"
    assert map_status_to_code(429) == "RATE_LIMIT"
    assert map_status_to_code(500) == "UPSTREAM"


def test_transient_status_is_retried(monkeypatch) -> None:
    session = _Session([_Response(503, ""), _Response(200, '{"ok": true}')])
    monkeypatch.setattr(http, "_SESSION", session)
    sleeps: list[float] = []
    assert fetch_json("https://x.test", "coingecko", sleep=sleeps.append) == {"ok": True}
    assert session.calls == 2
    assert sleeps == [0.5]


def test_rate_limit_is_not_retried(monkeypatch) -> None:
    session = _Session([_Response(429, "{}")] * 3)
    monkeypatch.setattr(http, "_SESSION", session)
    sleeps: list[float] = []
    with pytest.raises(ProviderError) as exc:
        fetch_json("https://x.test", "coingecko", max_retries=3, sleep=sleeps.append)
    assert exc.value.code == "RATE_LIMIT"
    assert not exc.value.transient
    assert "wait a minute" in exc.value.message
    assert session.calls == 1
    assert sleeps == []


def test_not_found_is_not_retried(monkeypatch) -> None:
    session = _Session([_Response(404, '{"error": "coin not found"}')])
    monkeypatch.setattr(http, "_SESSION", session)
    with pytest.raises(ProviderError) as exc:
        fetch_json("https://x.test", "coingecko", sleep=lambda _: None)
    assert exc.value.code == "NOT_FOUND"
    assert exc.value.status == 404
    assert exc.value.message.endswith("coin not found")
    assert session.calls == 1


def test_network_error_and_bad_json(monkeypatch) -> None:
    monkeypatch.setattr(http, "_SESSION", _Session([requests.ConnectionError("down")]))
    with pytest.raises(ProviderError) as exc:
        fetch_json("https://x.test", "coingecko", max_retries=1)
    assert exc.value.code == "NETWORK"

    monkeypatch.setattr(http, "_SESSION", _Session([_Response(200, "<html>")]))
    with pytest.raises(ProviderError) as exc:
        fetch_json("https://x.test", "coingecko")
    assert exc.value.code == "BAD_RESPONSE"
