"""Tests for health, site pages, security headers and app wiring."""

import logging
from dataclasses import replace
from datetime import datetime

from fastapi.testclient import TestClient

from src.app import create_app, sweep_once
from src.shared.security.csrf import CSRF_TOKEN_TTL_SECONDS, InMemoryTokenStore
from src.shared.security.rate_limit import FixedWindowRateLimiter


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert datetime.fromisoformat(body["timestamp"])


def test_health_does_not_need_mail_config(settings):
    client = TestClient(create_app(settings=replace(settings, email_user=None, email_password=None)))
    assert client.get("/api/health").status_code == 200


def test_site_pages(client):
    for path in ("/", "/services", "/about", "/contact"):
        response = client.get(path)
        assert response.status_code == 200, path
        assert response.headers["content-type"].startswith("text/html")


def test_static_assets(client):
    response = client.get("/js/contact.js")
    assert response.status_code == 200
    assert "csrf-token" in response.text


def test_unmatched_path_is_404(client):
    assert client.get("/no-such-page").status_code == 404


def test_unmatched_api_path_is_uniform_404(client):
    response = client.get("/api/unknown")
    assert response.status_code == 404
    assert response.json()["success"] is False


def test_missing_page_file_is_404(settings, tmp_path):
    client = TestClient(create_app(settings=replace(settings, static_dir=tmp_path)))
    assert client.get("/about").status_code == 404


def test_security_headers(client):
    response = client.get("/api/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "default-src 'self'" in response.headers["Content-Security-Policy"]
    assert "Strict-Transport-Security" not in response.headers


def test_security_headers_on_errors(client):
    response = client.post("/api/contact", json={})
    assert response.status_code == 403
    assert response.headers["X-Frame-Options"] == "DENY"


def test_production_restricts_cors_and_enables_hsts(settings):
    production = replace(settings, app_env="production", allowed_origin="https://coaservices.com")
    client = TestClient(create_app(settings=production))

    allowed = client.get("/api/health", headers={"Origin": "https://coaservices.com"})
    assert allowed.headers["access-control-allow-origin"] == "https://coaservices.com"
    assert "max-age=31536000" in allowed.headers["Strict-Transport-Security"]

    denied = client.get("/api/health", headers={"Origin": "https://evil.example"})
    assert "access-control-allow-origin" not in denied.headers


def test_development_allows_any_origin(client):
    response = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
    assert response.headers["access-control-allow-origin"] == "*"


def test_startup_runs_without_mail_config(settings):
    app = create_app(settings=replace(settings, email_user=None, email_password=None))
    with TestClient(app) as client:
        assert client.get("/api/csrf-token").status_code == 200
        assert not app.state.sweep_task.done()


def test_injected_collaborators_are_used(settings, clock):
    token_store = InMemoryTokenStore(clock=clock)
    rate_limiter = FixedWindowRateLimiter(clock=clock)
    assert len(token_store) == 0

    app = create_app(settings=settings, token_store=token_store, rate_limiter=rate_limiter)
    assert app.state.token_store is token_store
    assert app.state.rate_limiter is rate_limiter

    token = TestClient(app).get("/api/csrf-token").json()["csrfToken"]
    assert token in token_store


def test_post_to_unmatched_path_is_404(client):
    response = client.post("/no-such-page", json={})
    assert response.status_code == 404


def test_post_to_unmatched_api_path_is_uniform_404(client):
    response = client.post("/api/unknown", json={})
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Not Found"}


def test_sweep_once_clears_injected_stores(app, token_store, clock):
    token = token_store.issue("10.0.0.1")
    clock.advance(CSRF_TOKEN_TTL_SECONDS + 1)
    sweep_once(app)
    assert token not in token_store


class BrokenStore:
    def sweep(self):
        raise RuntimeError("cache offline")


def test_sweep_failure_is_logged_not_raised(settings, caplog):
    app = create_app(settings=settings, token_store=BrokenStore())
    with caplog.at_level(logging.ERROR):
        sweep_once(app)
    assert "Periodic sweep failed: cache offline" in caplog.text


def test_create_app_applies_log_level(settings):
    root = logging.getLogger()
    previous = root.level
    try:
        create_app(settings=replace(settings, log_level="DEBUG"))
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(previous)
