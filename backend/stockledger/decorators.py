# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

USER_HEADER = "X-User-Id"
MAX_USER_ID_LENGTH = 100


def require_user(f):
    """
    Require a user scope on the request.

    Sets g.user_id from the X-User-Id header. Authentication itself happens
    upstream; this layer only needs the identity to pick the storage scope.

    Returns 401 if the header is missing or blank, 400 if it is too long.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = (request.headers.get(USER_HEADER) or "").strip()
        if not user_id:
            return jsonify({"error": "Authentication required"}), 401
        if len(user_id) > MAX_USER_ID_LENGTH:
            return jsonify({"error": f"{USER_HEADER} exceeds max length {MAX_USER_ID_LENGTH}"}), 400

        g.user_id = user_id
        return f(*args, **kwargs)

    return decorated_function
