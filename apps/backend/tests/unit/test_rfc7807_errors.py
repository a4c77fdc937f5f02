"""
Name: RFC 7807 Error Shape Tests

Responsibilities:
  - Validate typed service errors, request validation and payload-size
    errors use the RFC 7807 shape
  - Ensure status/type/title/detail/instance fields are present
"""

import pytest
from app.api.exception_handlers import register_exception_handlers
from app.crosscutting.exceptions import DatabaseError, StaleRecordError
from app.crosscutting.middleware import BodyLimitMiddleware
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

pytestmark = pytest.mark.unit


class _Body(BaseModel):
    pin: str


def _build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    app.add_middleware(BodyLimitMiddleware, max_bytes=64)

    @app.get("/stale")
    def stale():
        raise StaleRecordError("Solicitud modificada concurrentemente")

    @app.get("/db")
    def db():
        raise DatabaseError("Pool agotado")

    @app.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    @app.post("/echo")
    def echo(body: _Body):
        return {"ok": True}

    return app


def _assert_problem(res, status: int, code: str) -> dict:
    assert res.status_code == status
    assert res.headers["content-type"].startswith("application/problem+json")
    body = res.json()
    assert body["status"] == status
    assert body["code"] == code
    assert body["type"] == f"about:blank/{code.lower()}"
    assert body["title"]
    assert body["detail"]
    assert body["instance"].startswith("http://testserver/")
    return body


def test_stale_record_is_409():
    res = TestClient(_build_app()).get("/stale")

    body = _assert_problem(res, 409, "CONFLICT")
    assert body["errors"][0]["error_id"]


def test_database_error_is_503():
    res = TestClient(_build_app()).get("/db")

    _assert_problem(res, 503, "DATABASE_ERROR")


def test_unhandled_exception_is_500():
    client = TestClient(_build_app(), raise_server_exceptions=False)

    res = client.get("/boom")

    _assert_problem(res, 500, "INTERNAL_ERROR")


def test_request_validation_is_422():
    res = TestClient(_build_app()).post("/echo", json={})

    body = _assert_problem(res, 422, "VALIDATION_ERROR")
    assert body["errors"][0]["field"] == "body.pin"


def test_payload_too_large_is_413():
    res = TestClient(_build_app()).post("/echo", content=b"x" * 200)

    assert res.status_code == 413
    assert res.json()["code"] == "PAYLOAD_TOO_LARGE"
