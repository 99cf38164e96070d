"""
API module for the MintDB record server.

This module provides the external interface:
- HTTP server (FastAPI) exposing create, read, update and delete

Invariants:
    - HTTP endpoints have the same semantics as RecordService
    - JSON request/response format
    - Errors carry a stable error_code

How to change safely:
    - Version the API prefix if breaking changes are needed
    - Keep error_code values stable for clients
"""

from .http_server import create_http_app, router

__all__ = [
    "create_http_app",
    "router",
]
