# Overview: Request decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer token.

    Sets g.auth (AuthContext) and g.token. The verifier is whatever auth
    provider the app registered under extensions["token_verifier"].
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = current_app.extensions["token_verifier"].verify(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.auth = context
        g.token = token
        return f(*args, **kwargs)

    return decorated_function


def require_roles(*roles: str):
    """Require one of the given roles. Must follow @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "auth"):
                return jsonify({"error": "Authentication required"}), 401
            if g.auth.role not in roles:
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": list(roles),
                }), 403
            return f(*args, **kwargs)

        return decorated_function
    return decorator
