from __future__ import annotations
from typing import Any, Dict, Optional
from flask import current_app
from flask_jwt_extended import get_jwt
from sqlalchemy import select
from tubex.models.authz import User, Company
from tubex.services.access import AccessResolver, AccessUser
from tubex.services.settings import CompanySettingsService, InMemoryStore, SettingsStore, SqlKeyValueStore
from tubex import get_db


def resolve_company_type(company_id: Optional[int]) -> Optional[str]:
    """Look up the company type for a user's company; None when unknown."""
    if company_id is None:
        return None
    session = get_db()
    company = session.execute(select(Company).where(Company.id==company_id)).scalar_one_or_none()
    return company.company_type if company else None


def build_identity_claims(user: User) -> Dict[str, Any]:
    return {
        'role': user.role,
        'company_id': user.company_id,
        'company_type': resolve_company_type(user.company_id),
        'locale': user.locale,
    }


def current_access_user() -> Optional[AccessUser]:
    """AccessUser for the verified JWT of the current request, or None."""
    return AccessUser.from_claims(get_jwt() or {})


def current_resolver() -> AccessResolver:
    return AccessResolver(current_access_user())


def get_settings_service() -> CompanySettingsService:
    """Service bound to the configured key/value backend (SETTINGS_BACKEND: sql | memory)."""
    ext = current_app.extensions
    if 'tubex_settings' not in ext:
        if current_app.config.get('SETTINGS_BACKEND', 'sql') == 'memory':
            kv = InMemoryStore()
        else:
            kv = SqlKeyValueStore(get_db)
        ext['tubex_settings'] = CompanySettingsService(SettingsStore(kv))
    return ext['tubex_settings']
