# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .models.auth import ROLE_AREA_MANAGER
from .services import session_service
from .services.scope import Actor


def require_auth(f):
    """
    Require a valid bearer token.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.actor: Actor(user_id, role) passed to the stock services

    Returns 401 if the Authorization header is missing, or the token is
    invalid, expired, revoked or belongs to a deactivated user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]

        user = session_service.validate_session(token)
        if not user:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = user
        g.actor = Actor.from_user(user)

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Restrict a route to the listed roles.

    Assistant Area Managers always pass. Any other role, including one the
    system does not know, must be listed explicitly.

    Usage:
        @require_auth
        @require_role("Field Assistant")
        def my_route():
            ...
    """
    allowed = set(roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "current_user"):
                return jsonify({"error": "Authentication required"}), 401

            role = g.current_user.role
            if role != ROLE_AREA_MANAGER and role not in allowed:
                return jsonify({"error": "Access denied", "role": role}), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator
