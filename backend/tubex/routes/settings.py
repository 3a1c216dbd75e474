from typing import Optional, Tuple
from flask import Blueprint, request, abort, make_response
from tubex.services.policy import current_access_user, get_settings_service
from tubex.decorators.auth import require_access, require_permissions

settings_bp = Blueprint('settings', __name__)


def _etag(snapshot) -> str:
    versions = snapshot['versions']
    return f"{versions['company']}.{versions['user']}"


def _parse_if_match() -> Optional[Tuple[int, int]]:
    """If-Match carries '<company version>.<user version>' as issued in the ETag header."""
    raw = request.headers.get('If-Match')
    if not raw:
        return None
    try:
        company_v, user_v = raw.strip().strip('"').split('.', 1)
        return int(company_v), int(user_v)
    except ValueError:
        abort(400, description='If-Match must be a settings ETag')


def _respond(snapshot, status: int = 200):
    resp = make_response(snapshot, status)
    resp.headers['ETag'] = _etag(snapshot)
    return resp


@settings_bp.get('')
@require_access('/settings')
def get_settings():
    snapshot = get_settings_service().snapshot(current_access_user())
    inm = request.headers.get('If-None-Match')
    if inm and inm.strip('"') == _etag(snapshot):
        resp = make_response('', 304)
        resp.headers['ETag'] = _etag(snapshot)
        return resp
    return _respond(snapshot)


@settings_bp.put('')
@require_access('/settings')
def update_settings():
    data = request.json or {}
    new_settings = data.get('settings')
    if new_settings is None:
        abort(400, description='settings required')
    apply_to_company = bool(data.get('applyToCompany', False))
    versions = _parse_if_match()
    expected = None
    if versions:
        expected = versions[0] if apply_to_company else versions[1]
    snapshot = get_settings_service().update_settings(
        current_access_user(), new_settings, apply_to_company=apply_to_company, expected_version=expected
    )
    return _respond(snapshot)


@settings_bp.put('/company')
@require_permissions('companySettings')
def update_company_settings():
    data = request.json or {}
    if not isinstance(data, dict) or not data:
        abort(400, description='settings body required')
    versions = _parse_if_match()
    snapshot = get_settings_service().update_settings(
        current_access_user(), data, apply_to_company=True, expected_version=versions[0] if versions else None
    )
    return _respond(snapshot)


@settings_bp.post('/apply-company')
@require_access('/settings')
def apply_company_settings():
    return _respond(get_settings_service().apply_company_settings(current_access_user()))


@settings_bp.delete('/sections/<section>')
@require_access('/settings')
def reset_section(section: str):
    return _respond(get_settings_service().reset_settings_section(current_access_user(), section))
