# app/auth.py

from functools import wraps
from flask import g, request

from app.errors import AuthError, AuthorizationError
from services.identity_service import IdentityService


def _bearer_token():
    auth_header = request.headers.get('Authorization', '')
    if not auth_header.startswith('Bearer '):
        return None
    token = auth_header.split(' ', 1)[1].strip()
    return token or None


def _authenticate():
    token = _bearer_token()
    if token is None:
        raise AuthError('Access denied. No valid token provided.', error_code='MISSING_TOKEN')

    claims = IdentityService.verify_token(token)
    user = IdentityService.find_or_create_user(claims)
    if not user.is_active():
        raise AuthorizationError('Account is not active. Please contact support.', error_code='ACCOUNT_INACTIVE')

    g.current_user = user
    g.identity_claims = claims
    return user


def login_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        _authenticate()
        return f(*args, **kwargs)
    return decorated


def roles_required(*roles):
    """Authenticates, then requires the user to hold one of the given roles."""
    allowed = [r.value if hasattr(r, 'value') else r for r in roles]

    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            user = _authenticate()
            if user.role not in allowed:
                raise AuthorizationError(
                    f"Access denied. Required role(s): {', '.join(allowed)}",
                    error_code='INSUFFICIENT_PERMISSIONS'
                )
            return f(*args, **kwargs)
        return decorated
    return decorator


def optional_auth(f):
    """Attaches the user when a valid token is present, never rejects."""
    @wraps(f)
    def decorated(*args, **kwargs):
        g.current_user = None
        if _bearer_token() is not None:
            try:
                _authenticate()
            except (AuthError, AuthorizationError):
                g.current_user = None
        return f(*args, **kwargs)
    return decorated


def current_user():
    return g.get('current_user')
