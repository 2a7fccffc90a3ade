"""Response envelopes shared by every API route."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class PageMeta(BaseModel):
    page: int
    per_page: int
    total: int
    total_pages: int


class ErrorBody(BaseModel):
    code: str
    message: str
    details: dict[str, list[str]] | None = None


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: ErrorBody


def envelope(data: Any, meta: BaseModel | dict | None = None) -> dict[str, Any]:
    """Wrap a successful result as ``{"success": true, "data": ..., "meta": ...}``."""
    body: dict[str, Any] = {"success": True, "data": data}
    if meta is not None:
        body["meta"] = meta
    return body
