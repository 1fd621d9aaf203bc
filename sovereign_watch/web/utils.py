"""Web helper functions."""

from uuid import uuid4

from fastapi import Request


def get_request_id(request: Request) -> str:
    """Return the caller's ``X-Request-ID`` or the one assigned by the middleware."""

    assigned = getattr(request.state, "request_id", None)
    return request.headers.get("X-Request-ID") or assigned or uuid4().hex


def format_trillions(amount: float) -> str:
    return f"${amount / 1_000_000_000_000:.2f}T"
