"""
Shared utilities for the royalty ledger API.

Authentication, payload validation, call-context parsing and the mapping
from ledger error kinds to HTTP responses.
"""

import os
import secrets
from functools import wraps
from typing import Any

from flask import jsonify, request

from call_context import CallContext
from royalty_errors import ErrorCategory, RoyaltyResult

# ============================================================
# Security Configuration
# ============================================================

API_KEY = os.getenv("ROYALTY_API_KEY", None)
# SECURITY: Default to requiring authentication for production safety
API_KEY_REQUIRED = os.getenv("ROYALTY_REQUIRE_AUTH", "true").lower() == "true"

# HTTP status per error category
CATEGORY_STATUS = {
    ErrorCategory.AUTHORIZATION: 403,
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.LOOKUP: 404,
    ErrorCategory.CAPACITY: 409,
}


# ============================================================
# Validation Utilities
# ============================================================

def validate_json_schema(
    data: dict[str, Any],
    required_fields: dict[str, type | tuple[type, ...]],
    optional_fields: dict[str, type | tuple[type, ...]] | None = None,
) -> tuple:
    """
    Validate a JSON payload against a simple schema.

    Booleans are rejected where integers are expected, since JSON `true`
    would otherwise pass as 1.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    def _matches(value: Any, expected: type | tuple[type, ...]) -> bool:
        if isinstance(value, bool) and expected is int:
            return False
        return isinstance(value, expected)

    for field_name, expected_type in required_fields.items():
        if field_name not in data:
            return False, f"Missing required field: {field_name}"
        if not _matches(data[field_name], expected_type):
            return False, f"Field '{field_name}' has the wrong type"

    for field_name, expected_type in (optional_fields or {}).items():
        if data.get(field_name) is not None and not _matches(data[field_name], expected_type):
            return False, f"Field '{field_name}' has the wrong type"

    return True, None


def parse_call_context(data: dict[str, Any]) -> tuple[CallContext | None, str | None]:
    """
    Build the CallContext the host supplies with every call.

    Expects `caller` (string) and `block_height` (non-negative integer).

    Returns:
        Tuple of (context, error_message)
    """
    is_valid, error = validate_json_schema(
        data, {"caller": str, "block_height": int}
    )
    if not is_valid:
        return None, error
    try:
        return CallContext(caller=data["caller"], block_height=data["block_height"]), None
    except ValueError as e:
        return None, str(e)


def result_response(result: RoyaltyResult, success_status: int = 200, **extra):
    """Render a RoyaltyResult as a Flask response tuple."""
    if result.ok:
        body = {"ok": True, "value": result.value}
        body.update(extra)
        return jsonify(body), success_status
    return jsonify(result.to_dict()), CATEGORY_STATUS[result.error.category]


# ============================================================
# Authentication Decorator
# ============================================================

def require_api_key(f):
    """Decorator to require API key authentication."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not API_KEY_REQUIRED:
            return f(*args, **kwargs)

        provided_key = request.headers.get('X-API-Key')

        if not provided_key:
            return jsonify({
                "error": "API key required",
                "hint": "Provide API key in X-API-Key header"
            }), 401

        if not API_KEY:
            return jsonify({
                "error": "Server API key not configured",
                "hint": "Set ROYALTY_API_KEY environment variable"
            }), 503

        if not secrets.compare_digest(provided_key, API_KEY):
            return jsonify({"error": "Invalid API key"}), 403

        return f(*args, **kwargs)
    return decorated_function
