from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from fxrates.core.config import Settings
from fxrates.core.rate_limit import RateLimiter
from fxrates.db.seed import DEFAULT_RATES
from fxrates.main import create_app


def _create(client, headers, from_currency, to_currency, rate):
    resp = client.post(
        "/exchange_rates",
        json={"from_currency": from_currency, "to_currency": to_currency, "rate": rate},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


# Create / read ------------------------------------------------------


def test_create_returns_entity(client, admin_headers):
    body = _create(client, admin_headers, "usd", "TWD", 32.5)
    assert {"id", "from_currency", "to_currency", "rate", "created_at", "updated_at"} <= set(body)
    assert body["from_currency"] == "USD"
    assert body["rate"] == 32.5

    fetched = client.get("/exchange_rates/USD/TWD").json()
    assert fetched["id"] == body["id"]
    assert fetched["created_at"] == body["created_at"]


def test_reverse_pair_is_not_found(client, admin_headers):
    _create(client, admin_headers, "USD", "TWD", 32.5)
    resp = client.get("/exchange_rates/TWD/USD")
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


def test_duplicate_create_is_conflict(client, admin_headers):
    _create(client, admin_headers, "USD", "TWD", 32.5)
    resp = client.post(
        "/exchange_rates",
        json={"from_currency": "USD", "to_currency": "TWD", "rate": 33},
        headers=admin_headers,
    )
    assert resp.status_code == 409
    assert resp.json()["error"] == "conflict"


@pytest.mark.parametrize(
    "payload",
    [
        {"from_currency": "USD", "to_currency": "TWD", "rate": -1},
        {"from_currency": "USD", "to_currency": "TWD", "rate": 0},
        {"from_currency": "USD", "to_currency": "USD", "rate": 1},
        {"from_currency": "", "to_currency": "TWD", "rate": 1},
        {"to_currency": "TWD", "rate": 1},
        {"from_currency": "USD", "to_currency": "TWD"},
    ],
)
def test_invalid_payloads_are_bad_requests(client, admin_headers, payload):
    resp = client.post("/exchange_rates", json=payload, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_error"


# Authorization --------------------------------------------------------


@pytest.mark.parametrize(
    "method,path,payload",
    [
        ("post", "/exchange_rates", {"from_currency": "USD", "to_currency": "TWD", "rate": 1}),
        ("put", "/exchange_rates/USD/TWD", {"rate": 2}),
        ("delete", "/exchange_rates/USD/TWD", None),
    ],
)
def test_writes_need_admin(client, user_headers, method, path, payload):
    kwargs = {"json": payload} if payload is not None else {}

    anonymous = client.request(method.upper(), path, **kwargs)
    assert anonymous.status_code == 401
    assert anonymous.json() == {"error": "unauthenticated", "detail": "Authentication required"}
    assert anonymous.headers["WWW-Authenticate"] == "Bearer"

    bad_token = client.request(
        method.upper(), path, headers={"Authorization": "Bearer forged"}, **kwargs
    )
    assert bad_token.status_code == 401
    assert bad_token.json()["detail"] == "Invalid or expired credential"

    user = client.request(method.upper(), path, headers=user_headers, **kwargs)
    assert user.status_code == 403
    assert user.json()["error"] == "forbidden"


def test_reads_are_open_to_every_role(client, admin_headers, user_headers):
    _create(client, admin_headers, "USD", "TWD", 32.5)
    for headers in ({}, user_headers, admin_headers):
        assert client.get("/exchange_rates/USD/TWD", headers=headers).status_code == 200
        assert client.get("/exchange_rates", headers=headers).status_code == 200
        assert (
            client.get(
                "/convert", params={"from": "USD", "to": "TWD", "amount": 1}, headers=headers
            ).status_code
            == 200
        )


# Update / delete ------------------------------------------------------


def test_update_refreshes_updated_at(client, admin_headers):
    created = _create(client, admin_headers, "USD", "TWD", 32.5)
    first = client.put("/exchange_rates/USD/TWD", json={"rate": 31.0}, headers=admin_headers)
    second = client.put("/exchange_rates/usd/twd", json={"rate": 31.0}, headers=admin_headers)
    assert first.status_code == 200
    assert second.status_code == 200
    body = second.json()
    assert body["rate"] == 31.0
    assert body["id"] == created["id"]
    assert body["created_at"] == created["created_at"]
    assert datetime.fromisoformat(body["updated_at"]) >= datetime.fromisoformat(
        first.json()["updated_at"]
    )
    assert client.get("/exchange_rates/USD/TWD").json()["rate"] == 31.0


def test_update_missing_pair_is_not_found(client, admin_headers):
    resp = client.put("/exchange_rates/USD/TWD", json={"rate": 31.0}, headers=admin_headers)
    assert resp.status_code == 404


def test_delete_then_not_found(client, admin_headers):
    _create(client, admin_headers, "USD", "TWD", 32.5)
    resp = client.delete("/exchange_rates/USD/TWD", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == {"status": "deleted", "from_currency": "USD", "to_currency": "TWD"}
    assert client.get("/exchange_rates/USD/TWD").status_code == 404
    assert client.delete("/exchange_rates/USD/TWD", headers=admin_headers).status_code == 404


# Listing --------------------------------------------------------------


def test_list_pagination(client, admin_headers):
    for i in range(25):
        _create(client, admin_headers, f"CUR{i}", "TWD", (i + 1) * 10.5)

    page3 = client.get("/exchange_rates", params={"page": 3, "limit": 10}).json()
    assert page3["pagination"] == {"page": 3, "limit": 10, "total": 25, "total_pages": 3}
    assert [r["from_currency"] for r in page3["data"]] == [f"CUR{i}" for i in range(20, 25)]

    default = client.get("/exchange_rates").json()
    assert default["pagination"]["limit"] == 20
    assert len(default["data"]) == 20


def test_list_filter_by_from_currency(client, admin_headers):
    _create(client, admin_headers, "USD", "TWD", 32.5)
    _create(client, admin_headers, "EUR", "TWD", 36.0)
    _create(client, admin_headers, "USD", "JPY", 150.0)

    body = client.get("/exchange_rates", params={"from_currency": "usd"}).json()
    assert [r["from_currency"] for r in body["data"]] == ["USD", "USD"]
    assert body["pagination"]["total"] == 2

    by_target = client.get("/exchange_rates", params={"to_currency": "TWD"}).json()
    assert [r["from_currency"] for r in by_target["data"]] == ["USD", "EUR"]


@pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}, {"limit": 101}, {"page": "x"}])
def test_list_bad_pagination(client, params):
    resp = client.get("/exchange_rates", params=params)
    assert resp.status_code == 400


# Conversion -----------------------------------------------------------


def test_convert_direct(client, admin_headers):
    _create(client, admin_headers, "USD", "TWD", 32.5)
    resp = client.get("/convert", params={"from": "USD", "to": "TWD", "amount": 100})
    assert resp.status_code == 200
    body = resp.json()
    assert body["to_amount"] == 3250.0
    assert body["to_currency"] == "TWD"
    assert body["conversion_path"] == "USD→TWD"


def test_convert_through_intermediate(client, admin_headers):
    _create(client, admin_headers, "USD", "EUR", 0.9)
    _create(client, admin_headers, "EUR", "TWD", 36.0)
    body = client.get("/convert", params={"from": "USD", "to": "TWD", "amount": 100}).json()
    assert body["to_amount"] == 3240.0
    assert body["path"] == ["USD", "EUR", "TWD"]
    assert body["conversion_path"] == "USD→EUR→TWD"


def test_convert_unreachable(client, admin_headers):
    _create(client, admin_headers, "USD", "TWD", 32.5)
    resp = client.get("/convert", params={"from": "TWD", "to": "USD", "amount": 100})
    assert resp.status_code == 422
    assert resp.json()["error"] == "not_convertible"


@pytest.mark.parametrize(
    "params",
    [
        {"from": "USD", "to": "TWD", "amount": 0},
        {"from": "USD", "to": "TWD", "amount": -3},
        {"from": "USD", "to": "TWD"},
        {"from": "USD", "amount": 3},
    ],
)
def test_convert_bad_input(client, params):
    resp = client.get("/convert", params=params)
    assert resp.status_code == 400


def test_convert_large_amount(client, admin_headers):
    _create(client, admin_headers, "USD", "TWD", 32.5)
    resp = client.get("/convert", params={"from": "USD", "to": "TWD", "amount": 1e25})
    assert resp.status_code == 200, resp.text
    assert resp.json()["to_amount"] == 3.25e26


def test_convert_out_of_range_result(client, admin_headers):
    _create(client, admin_headers, "AAA", "BBB", 1e300)
    resp = client.get("/convert", params={"from": "AAA", "to": "BBB", "amount": 1e10})
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_amount"


# Throttling -----------------------------------------------------------


@pytest.fixture
def throttled(clock):
    settings = Settings(storage_backend="memory", admin_tokens=["adm"], rate_limit_requests=3)
    limiter = RateLimiter(max_requests=3, window_seconds=60, clock=clock)
    return TestClient(create_app(settings, rate_limiter=limiter))


def test_rate_limit_headers_and_429(throttled, clock):
    remaining = [
        throttled.get("/exchange_rates").headers["X-RateLimit-Remaining"] for _ in range(3)
    ]
    assert remaining == ["2", "1", "0"]

    clock.advance(20)
    resp = throttled.get("/exchange_rates")
    assert resp.status_code == 429
    assert resp.headers["Retry-After"] == "40"
    assert resp.headers["X-RateLimit-Remaining"] == "0"
    assert resp.json()["error"] == "rate_limit_exceeded"
    assert resp.json()["retry_after"] == 40

    # A different client identity has its own window
    other = throttled.get("/exchange_rates", headers={"Authorization": "Bearer adm"})
    assert other.status_code == 200

    clock.advance(40)
    assert throttled.get("/exchange_rates").status_code == 200


def test_error_responses_carry_limit_headers(throttled):
    missing = throttled.get("/exchange_rates/USD/TWD")
    assert missing.status_code == 404
    assert missing.headers["X-RateLimit-Remaining"] == "2"

    unreachable = throttled.get("/convert", params={"from": "USD", "to": "TWD", "amount": 1})
    assert unreachable.status_code == 422
    assert unreachable.headers["X-RateLimit-Remaining"] == "1"

    bad_amount = throttled.get("/convert", params={"from": "USD", "to": "TWD"})
    assert bad_amount.status_code == 400
    assert bad_amount.headers["X-RateLimit-Limit"] == "3"
    assert bad_amount.headers["X-RateLimit-Remaining"] == "0"

    assert throttled.get("/exchange_rates").status_code == 429


def test_write_errors_carry_limit_headers(client, admin_headers):
    _create(client, admin_headers, "USD", "TWD", 32.5)
    duplicate = client.post(
        "/exchange_rates",
        json={"from_currency": "USD", "to_currency": "TWD", "rate": 33},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409
    assert "X-RateLimit-Remaining" in duplicate.headers

    invalid = client.post(
        "/exchange_rates", json={"from_currency": "USD", "rate": 1}, headers=admin_headers
    )
    assert invalid.status_code == 400
    assert invalid.headers["X-RateLimit-Limit"] == "1000"


def test_rate_limit_can_be_disabled():
    settings = Settings(storage_backend="memory", rate_limit_enabled=False)
    client = TestClient(create_app(settings))
    resp = client.get("/exchange_rates")
    assert resp.status_code == 200
    assert "X-RateLimit-Limit" not in resp.headers


# App wiring -----------------------------------------------------------


def test_unknown_route(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


def test_request_id_is_echoed(client):
    resp = client.get("/", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"
    assert resp.json()["version"] == "0.1.0"


def test_seeded_rates(tmp_path):
    settings = Settings(
        storage_backend="sqlite", data_dir=tmp_path, seed_default_rates=True
    )
    client = TestClient(create_app(settings))
    body = client.get("/exchange_rates", params={"limit": 100}).json()
    assert body["pagination"]["total"] == len(DEFAULT_RATES)
    converted = client.get("/convert", params={"from": "GBP", "to": "EUR", "amount": 10}).json()
    assert converted["path"] == ["GBP", "USD", "EUR"]
