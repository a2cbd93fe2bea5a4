"""Code Routes — HTTP surface for activate / verify / confirm-use / import / lookup.

Invariants verified:
    - Every lifecycle outcome (including NotFound and Rejected) is HTTP 200
    - Status strings on the wire match the domain enums
    - The clock comes from get_now (pinned through FrozenClock)
    - Blank codes are a 400 validation envelope, not a lookup
    - Storage failures are 503 + retryable + Retry-After
"""

from entrypass.services.lifecycle_engine import LifecycleEngine
from entrypass.main import app

from tests.services.fakes import FailingCodeStore


async def _import(client, *lines: str, detect_header: bool = False):
    res = await client.post(
        "/api/v1/codes/import",
        json={"lines": list(lines), "detect_header": detect_header},
    )
    assert res.status_code == 200
    return res.json()


# ─── import ──────────────────────────────────────────────────────

async def test_import_reports_counts(client):
    body = await _import(client, "a", "a", " a ", "b")
    assert body == {"imported": 2, "skipped": 2}


async def test_import_header_detected_by_default_pattern(client):
    res = await client.post(
        "/api/v1/codes/import", json={"lines": ["code", "abc123qwe456"]},
    )
    assert res.json() == {"imported": 1, "skipped": 1}


async def test_import_rejects_missing_lines_field(client):
    res = await client.post("/api/v1/codes/import", json={})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


# ─── verify / activate ───────────────────────────────────────────

async def test_verify_unknown_code(client):
    res = await client.post("/api/v1/codes/verify", json={"code": "nope-1"})
    assert res.status_code == 200
    assert res.json() == {"code": "nope-1", "status": "NotFound"}


async def test_activate_flow(client, clock):
    await _import(client, "abc123")

    res = await client.post("/api/v1/codes/verify", json={"code": "abc123"})
    assert res.json()["status"] == "Unused"

    first = await client.post("/api/v1/codes/activate", json={"code": "abc123"})
    assert first.status_code == 200
    assert first.json()["status"] == "Activated"
    activated_at = first.json()["activated_at"]

    clock.advance(minutes=2)
    second = await client.post("/api/v1/codes/activate", json={"code": "abc123"})
    assert second.json()["status"] == "AlreadyActivated"
    assert second.json()["activated_at"] == activated_at


async def test_activate_unknown_code(client):
    res = await client.post("/api/v1/codes/activate", json={"code": "unknown-1"})
    assert res.status_code == 200
    assert res.json()["status"] == "NotFound"
    assert res.json()["activated_at"] is None


async def test_blank_code_is_validation_error(client):
    res = await client.post("/api/v1/codes/verify", json={"code": "   "})
    assert res.status_code == 400
    body = res.json()["error"]
    assert body["code"] == "VALIDATION_ERROR"
    assert body["details"][0]["field"] == "body.code"


async def test_verify_expires_with_clock(client, clock):
    await _import(client, "abc123")
    await client.post("/api/v1/codes/activate", json={"code": "abc123"})

    clock.advance(minutes=14, seconds=59)
    res = await client.post("/api/v1/codes/verify", json={"code": "abc123"})
    assert res.json()["status"] == "Active"

    clock.advance(seconds=1)
    res = await client.post("/api/v1/codes/verify", json={"code": "abc123"})
    assert res.json()["status"] == "Expired"


# ─── confirm-use ─────────────────────────────────────────────────

async def test_confirm_use_flow(client, clock):
    await _import(client, "abc123")
    await client.post("/api/v1/codes/activate", json={"code": "abc123"})
    clock.advance(minutes=3)

    first = await client.post("/api/v1/codes/confirm-use", json={"code": "abc123"})
    second = await client.post("/api/v1/codes/confirm-use", json={"code": "abc123"})

    assert first.json() == {"code": "abc123", "status": "Confirmed", "reason": None}
    assert second.status_code == 200
    assert second.json() == {
        "code": "abc123", "status": "Rejected", "reason": "AlreadyUsed",
    }


async def test_confirm_use_rejects_unactivated(client):
    await _import(client, "abc123")
    res = await client.post("/api/v1/codes/confirm-use", json={"code": "abc123"})
    assert res.json()["reason"] == "NotActivated"


async def test_confirm_use_rejects_expired(client, clock):
    await _import(client, "abc123")
    await client.post("/api/v1/codes/activate", json={"code": "abc123"})
    clock.advance(minutes=15)
    res = await client.post("/api/v1/codes/confirm-use", json={"code": "abc123"})
    assert res.json()["reason"] == "Expired"


# ─── lookup ──────────────────────────────────────────────────────

async def test_get_pass_countdown(client, clock):
    await _import(client, "abc123")
    await client.post("/api/v1/codes/activate", json={"code": "abc123"})
    clock.advance(minutes=10)

    res = await client.get("/api/v1/codes/abc123")

    body = res.json()
    assert res.status_code == 200
    assert body["status"] == "Active"
    assert body["remaining_seconds"] == 300
    assert body["used_at"] is None


async def test_get_unknown_pass(client):
    res = await client.get("/api/v1/codes/unknown-1")
    assert res.status_code == 200
    assert res.json()["status"] == "NotFound"
    assert res.json()["expires_at"] is None


# ─── storage failures ────────────────────────────────────────────

async def test_storage_failure_is_retryable_503(client):
    store = FailingCodeStore("try_mark_used")
    await store.try_create_many(["abc123"])
    app.state.lifecycle_engine = LifecycleEngine(store)

    await client.post("/api/v1/codes/activate", json={"code": "abc123"})
    res = await client.post("/api/v1/codes/confirm-use", json={"code": "abc123"})

    assert res.status_code == 503
    assert res.headers["retry-after"] == "1"
    error = res.json()["error"]
    assert error["code"] == "STORAGE_UNAVAILABLE"
    assert error["retryable"] is True
    assert (await store.get("abc123")).used_at is None


async def test_readiness_reports_storage(client):
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 200
    assert res.json()["checks"]["storage"] == "healthy"

    app.state.lifecycle_engine = LifecycleEngine(FailingCodeStore("health_check"))
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 503
    assert res.json()["reason"] == "storage_unavailable"


async def test_liveness(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"
