from functools import wraps
from flask import abort
from flask_jwt_extended import verify_jwt_in_request
from tubex.services.policy import current_resolver


def _guard(check, description: str):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if not check(current_resolver()):
                abort(403, description=description)
            return fn(*args, **kwargs)
        return wrapper
    return outer


def _mode_check(mode: str, all_fn, any_fn):
    if mode not in ('all', 'any'):
        raise ValueError("mode must be 'all' or 'any'")
    return all_fn if mode == 'all' else any_fn


def require_permissions(*keys: str, mode: str = 'all'):
    pick = _mode_check(mode, lambda r: r.has_all(keys), lambda r: r.has_any(keys))
    return _guard(pick, 'Missing permission')


def require_action(*actions: str, mode: str = 'all'):
    pick = _mode_check(mode, lambda r: r.can_perform_all(actions), lambda r: r.can_perform_any(actions))
    return _guard(pick, 'Action not permitted')


def require_access(page: str):
    return _guard(lambda r: r.can_access(page), 'Page access denied')
