"""Standardized API response helpers.

Every sheet endpoint answers with the same envelope the spreadsheet web
endpoints always used:

    read:    {"success": true, "data": [...], "count": <int>}
    write:   {"success": true, "message": "..."}
    failure: {"success": false, "error": "..."}

Use read_response() for list endpoints, write_response() for POST handlers and
error_response() when shaping a failure by hand.
"""

from typing import Any, Dict, List, Optional


def read_response(items: List[Dict[str, Any]]) -> dict:
    """Wrap a list of shaped rows in the read envelope."""
    return {
        "success": True,
        "data": items,
        "count": len(items),
    }


def write_response(message: str, **extra: Any) -> dict:
    """Success envelope for a write. The written record is never echoed back."""
    body = {"success": True, "message": message}
    body.update(extra)
    return body


def error_response(error: str, fields: Optional[List[str]] = None) -> dict:
    """Failure envelope carrying the error text."""
    body: Dict[str, Any] = {"success": False, "error": error}
    if fields:
        body["fields"] = fields
    return body
