"""Tests for metrics labels and tracing setup."""

from __future__ import annotations

import uuid

from fastapi import FastAPI
from prometheus_client import REGISTRY

from microblog.observability.tracing import configure_tracing, parse_otlp_headers


def _requests(method: str, path: str, status_code: str) -> float:
    value = REGISTRY.get_sample_value(
        "microblog_request_total",
        {"method": method, "path": path, "status_code": status_code},
    )
    return value or 0.0


def test_unmatched_paths_share_one_label(client):
    before = _requests("GET", "unmatched", "404")
    stray = f"/no-such-page/{uuid.uuid4()}"

    assert client.get(stray).status_code == 404
    assert client.get(f"/no-such-page/{uuid.uuid4()}").status_code == 404

    assert _requests("GET", "unmatched", "404") == before + 2
    assert _requests("GET", stray, "404") == 0.0


def test_matched_paths_use_route_template(client, db_session):
    before = _requests("GET", "/api/posts/{post_id}", "404")
    assert client.get(f"/api/posts/{uuid.uuid4()}").status_code == 404
    assert _requests("GET", "/api/posts/{post_id}", "404") == before + 1


def test_parse_otlp_headers():
    assert parse_otlp_headers(None) is None
    assert parse_otlp_headers("") is None
    assert parse_otlp_headers("authorization=Bearer abc, x-team = blog") == {
        "authorization": "Bearer abc",
        "x-team": "blog",
    }
    assert parse_otlp_headers("novalue,=orphan") is None


def test_tracing_is_off_without_endpoint():
    assert configure_tracing(FastAPI(), [], "microblog", "development", None) is None
