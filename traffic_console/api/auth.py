"""
JWT session helpers and middleware for the Flask API.
"""

from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Any, Dict, Optional

import jwt
from flask import current_app, jsonify, request

from traffic_console.config import SECRET_KEY, TOKEN_EXPIRY_HOURS
from traffic_console.envelope import error_response
from traffic_console.models import Permission
from traffic_console.rbac import resolve_permission

# In-memory session store (use Redis in production)
# Structure: {token: {"address": str, "user": UserConfig | None, "permission": Permission, ...}}
sessions: Dict[str, Dict[str, Any]] = {}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_token(address: str, permission: Permission) -> str:
    """Generate a JWT token for a connected wallet."""
    payload = {
        "sub": address,
        "role": permission.role,
        "scope": permission.location_scope,
        "iat": utc_now(),
        "exp": utc_now() + timedelta(hours=TOKEN_EXPIRY_HOURS),
    }
    return jwt.encode(payload, SECRET_KEY, algorithm="HS256")


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify a JWT token and return the decoded payload (or None)."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def _unauthorized(code: str, message: str):
    return jsonify(error_response(code, message)), 401


def _authenticate(required: bool):
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            token = None

            # Check Authorization header (Bearer token)
            if "Authorization" in request.headers:
                auth_header = request.headers["Authorization"]
                try:
                    token = auth_header.split(" ")[1]
                except IndexError:
                    return _unauthorized("UNAUTHORIZED", "Invalid authorization header format")

            # Fallback: token in query params
            if not token:
                token = request.args.get("token")

            if not token:
                if required:
                    return _unauthorized("UNAUTHORIZED", "Authentication token is missing")
                # anonymous caller: not connected
                request.session_data = None
                request.token = None
                request.permission = resolve_permission(None, False, current_app.config["REGISTRY"])
                return f(*args, **kwargs)

            payload = verify_token(token)
            if not payload:
                return _unauthorized("INVALID_TOKEN", "Invalid or expired token")

            if token not in sessions:
                return _unauthorized("SESSION_NOT_FOUND", "Session not found. Please login again.")

            # Attach session data to the request context
            session_data = sessions[token]
            session_data["last_activity"] = utc_now()
            request.session_data = session_data
            request.token = token
            request.permission = session_data["permission"]

            return f(*args, **kwargs)

        return decorated
    return decorator


token_required = _authenticate(required=True)
token_optional = _authenticate(required=False)


def cleanup_expired_sessions():
    """Remove sessions that have been inactive beyond TOKEN_EXPIRY_HOURS."""
    now = utc_now()
    expired = [
        tok for tok, data in sessions.items()
        if (now - data["last_activity"]).total_seconds() > TOKEN_EXPIRY_HOURS * 3600
    ]
    for tok in expired:
        del sessions[tok]
    if expired:
        print(f"[cleanup] Removed {len(expired)} expired sessions")
