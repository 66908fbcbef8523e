from functools import wraps

from flask import current_app, jsonify
from flask_login import current_user

from quizhost.constants import ALLOWED_HOSTS
from quizhost.errors import PermissionDenied


def current_identity():
    """The signed-in user, or None."""
    if current_user and current_user.is_authenticated:
        return current_user
    return None


def is_allowed_host(store, identity):
    if identity is None:
        return False
    return bool(store.read(f'{ALLOWED_HOSTS}/{identity.username}'))


def require_host(store):
    """Raise PermissionDenied unless the current user is an allowed host."""
    identity = current_identity()
    if identity is None:
        raise PermissionDenied('Sign in as a host to change match data', reason='not-authenticated')
    if not is_allowed_host(store, identity):
        raise PermissionDenied(f'{identity.username} is not an allowed host', reason='not-allowed')
    return identity


def host_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        from quizhost import get_domain
        identity = current_identity()
        if identity is None:
            return jsonify({'error': 'Authentication required'}), 401
        if not is_allowed_host(get_domain().store, identity):
            current_app.logger.info(f"[auth-denied] user={identity.username}")
            return jsonify({'error': 'Not an allowed host'}), 403
        return view(*args, **kwargs)
    return wrapper
