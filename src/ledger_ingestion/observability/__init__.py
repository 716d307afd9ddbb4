"""Structured logging, request correlation and upload fingerprinting."""

from .privacy import hash_payload
from .telemetry import (
    bind_request_context,
    current_request_id,
    ensure_request_id,
    reset_request_context,
    setup_telemetry,
)

__all__ = [
    "hash_payload",
    "bind_request_context",
    "current_request_id",
    "ensure_request_id",
    "reset_request_context",
    "setup_telemetry",
]
