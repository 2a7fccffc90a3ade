"""Tests for response security headers."""

from __future__ import annotations


def test_api_responses_carry_security_headers(client, db_session):
    response = client.get("/api/tags")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["Referrer-Policy"] == "no-referrer"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "default-src 'none'" in response.headers["Content-Security-Policy"]
    assert "Strict-Transport-Security" not in response.headers


def test_error_envelopes_carry_security_headers(client, db_session):
    response = client.get("/api/comments")

    assert response.status_code == 400
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_hsts_only_behind_https(client, db_session):
    response = client.get("/healthz", headers={"X-Forwarded-Proto": "https"})
    assert response.headers["Strict-Transport-Security"].startswith("max-age=")
