from functools import wraps
from typing import Callable, List

from flask import jsonify
from flask_jwt_extended import get_jwt, jwt_required
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

ADMIN_ROLE = "admin"
VOTER_ROLE = "voter"

# Defaults come from RATELIMIT_* app config
limiter = Limiter(get_remote_address)


def roles_for(email: str, admin_emails: List[str]) -> List[str]:
    """Roles claim for a verified email."""
    return [ADMIN_ROLE] if email in admin_emails else [VOTER_ROLE]


def roles_required(roles: List[str]) -> Callable:
    """
    Decorator for role-based access control.
    Usage: @roles_required(['admin'])
    """
    def wrapper(fn: Callable) -> Callable:
        @wraps(fn)
        @jwt_required()
        def decorator(*args, **kwargs):
            claims = get_jwt()
            token_roles = claims.get("roles", [])
            if not any(r in token_roles for r in roles):
                return jsonify({"msg": "Forbidden"}), 403
            return fn(*args, **kwargs)
        return decorator
    return wrapper
