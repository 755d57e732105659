import pytest
from fastapi.responses import PlainTextResponse
from fastapi.testclient import TestClient
from mangum import Mangum

from secsurf.core.config import Settings
from secsurf.core.errors import AppError
from secsurf.main import create_app

HSTS = "max-age=31536000; includeSubDomains"


def _settings(**overrides) -> Settings:
    base = {"APP_STAGE": "dev", "LOG_LEVEL": "ERROR", "BEHIND_TLS_PROXY": False}
    base.update(overrides)
    return Settings(**base)


@pytest.fixture
def app():
    app = create_app(_settings())

    @app.get("/frameable")
    async def frameable():
        return PlainTextResponse("ok", headers={"X-Frame-Options": "sameorigin"})

    @app.get("/not-ready")
    async def not_ready():
        raise AppError("NOT_READY", "Service is starting.", status=503)

    @app.get("/crash")
    async def crash():
        raise RuntimeError("boom")

    return app


@pytest.fixture
def proxied_app():
    return create_app(_settings(BEHIND_TLS_PROXY=True))


def test_https_request_gets_hsts(app):
    r = TestClient(app, base_url="https://testserver").get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert r.headers["X-XSS-Protection"] == "1; mode=block"
    assert r.headers["X-Frame-Options"] == "deny"
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["Strict-Transport-Security"] == HSTS


def test_http_request_has_no_hsts(app):
    r = TestClient(app).get("/healthz")
    assert r.status_code == 200
    assert r.headers["X-Frame-Options"] == "deny"
    assert "Strict-Transport-Security" not in r.headers


def test_behind_proxy_sends_hsts_on_plain_http(proxied_app):
    r = TestClient(proxied_app).get("/healthz")
    assert r.headers["Strict-Transport-Security"] == HSTS
    assert r.headers["X-Content-Type-Options"] == "nosniff"


def test_route_can_override_frame_options(app):
    r = TestClient(app, base_url="https://testserver").get("/frameable")
    assert r.text == "ok"
    assert r.headers.get_list("X-Frame-Options") == ["sameorigin"]


def test_not_found_envelope_carries_headers(app):
    r = TestClient(app).get("/nope", headers={"X-Request-ID": "req-123"})
    assert r.status_code == 404
    body = r.json()
    assert body["error"]["code"] == "NOT_FOUND"
    assert body["error"]["requestId"] == "req-123"
    assert r.headers["X-Request-ID"] == "req-123"
    assert r.headers["X-Content-Type-Options"] == "nosniff"


def test_app_error_envelope_carries_headers(app):
    r = TestClient(app, base_url="https://testserver").get("/not-ready")
    assert r.status_code == 503
    assert r.json()["error"]["code"] == "NOT_READY"
    assert r.headers["Strict-Transport-Security"] == HSTS


def test_unhandled_error_returns_500_envelope(app):
    r = TestClient(app, raise_server_exceptions=False).get("/crash")
    assert r.status_code == 500
    body = r.json()
    assert body["error"]["code"] == "INTERNAL_ERROR"
    assert "boom" not in r.text


def test_unhandled_error_propagates_through_middleware(app):
    with pytest.raises(RuntimeError, match="boom"):
        TestClient(app).get("/crash")


def test_request_id_generated_when_missing(app):
    r = TestClient(app).get("/healthz")
    assert r.headers.get("X-Request-ID")


def test_root_reports_hsts_policy(app, proxied_app):
    assert TestClient(app).get("/").json() == {"service": "secsurf", "stage": "dev", "hsts": "tls-only"}
    assert TestClient(proxied_app).get("/").json()["hsts"] == "always"


def test_docs_hidden_in_prod():
    app = create_app(_settings(APP_STAGE="prod"))
    assert TestClient(app).get("/docs").status_code == 404


def _http_api_event(path: str, proto: str) -> dict:
    return {
        "version": "2.0",
        "routeKey": "$default",
        "rawPath": path,
        "rawQueryString": "",
        "headers": {
            "host": "api.example.com",
            "x-forwarded-proto": proto,
            "x-forwarded-port": "443" if proto == "https" else "80",
            "x-forwarded-for": "203.0.113.7",
        },
        "requestContext": {
            "accountId": "123456789012",
            "apiId": "api-id",
            "domainName": "api.example.com",
            "domainPrefix": "api",
            "http": {
                "method": "GET",
                "path": path,
                "protocol": "HTTP/1.1",
                "sourceIp": "203.0.113.7",
                "userAgent": "pytest",
            },
            "requestId": "lambda-req",
            "routeKey": "$default",
            "stage": "$default",
            "time": "19/Oct/2026:10:00:00 +0000",
            "timeEpoch": 1792404000000,
        },
        "isBase64Encoded": False,
    }


def test_lambda_handler_sets_headers():
    handler = Mangum(create_app(_settings(BEHIND_TLS_PROXY=True)), lifespan="off")
    resp = handler(_http_api_event("/healthz", "http"), None)
    assert resp["statusCode"] == 200
    headers = {k.lower(): v for k, v in resp["headers"].items()}
    assert headers["x-frame-options"] == "deny"
    assert headers["strict-transport-security"] == HSTS
