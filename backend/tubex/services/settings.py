"""Company settings with per-user overrides.

Two records exist per user: the company-wide defaults (written by company admins) and
a sparse override record holding only the fields the user customised. Effective
settings are computed on read as merge_settings(company, overrides) and never stored.

Records live in an injected key/value store under '<prefix><id>' keys as JSON text.
Unreadable records are treated as absent: company settings fall back to
DEFAULT_SETTINGS and overrides to {}.
"""
from __future__ import annotations
import copy
import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from tubex.constants.settings import COMPANY_KEY_PREFIX, DEFAULT_SETTINGS, SECTIONS, USER_OVERRIDE_KEY_PREFIX
from tubex.models.settings_record import SettingsRecord
from tubex.services.access import AccessResolver, AccessUser
from tubex.services.errors import InvalidSectionError, SettingsPermissionError, StaleSettingsError, TubexError

logger = logging.getLogger(__name__)


# ---------------- Merge helpers ---------------- #

def merge_settings(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep merge overrides onto base and return a new dict.

    A key recurses only when both sides hold a mapping. Any other override value,
    lists included, replaces the base value outright; lists are never merged
    element-wise. Neither input is mutated and the result shares no nested
    objects with them.
    """
    out = copy.deepcopy(dict(base))
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(out.get(key), Mapping):
            out[key] = merge_settings(out[key], value)
        else:
            out[key] = copy.deepcopy(value)
    return out


def _differing_keys(base: Mapping[str, Any], compare: Mapping[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key, value in compare.items():
        base_value = base.get(key)
        if isinstance(base_value, Mapping) and isinstance(value, Mapping):
            nested = _differing_keys(base_value, value)
            if nested:
                result[key] = nested
        elif json.dumps(base_value, sort_keys=True) != json.dumps(value, sort_keys=True):
            result[key] = copy.deepcopy(value)
    return result


def _section(settings: Mapping[str, Any], section: str) -> Mapping[str, Any]:
    value = settings.get(section)
    return value if isinstance(value, Mapping) else {}


def extract_user_overrides(company_settings: Mapping[str, Any], user_settings: Mapping[str, Any]) -> Dict[str, Any]:
    """Return the sparse record of fields where user_settings differs from company_settings."""
    overrides: Dict[str, Any] = {}
    for section in SECTIONS:
        diff = _differing_keys(_section(company_settings, section), _section(user_settings, section))
        if diff:
            overrides[section] = diff
    return overrides


def has_section_override(overrides: Mapping[str, Any], section: str) -> bool:
    # An explicitly saved empty section does not count as an override
    value = overrides.get(section)
    return isinstance(value, Mapping) and len(value) > 0


def overridden_sections(overrides: Mapping[str, Any]) -> List[str]:
    return [s for s in SECTIONS if has_section_override(overrides, s)]


def validate_section(section: str) -> str:
    if section not in SECTIONS:
        raise InvalidSectionError(f"Unknown settings section '{section}'")
    return section


def validate_settings(new_settings: Any) -> Mapping[str, Any]:
    """Check a partial settings payload: known section names, each mapped to an object."""
    if not isinstance(new_settings, Mapping):
        raise TubexError('settings must be an object')
    for section, value in new_settings.items():
        validate_section(section)
        if not isinstance(value, Mapping):
            raise InvalidSectionError(f"Settings section '{section}' must be an object")
    return new_settings


# ---------------- Key/value substrate ---------------- #

class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def get_version(self, key: str) -> int: ...

    def set(self, key: str, value: str, expected_version: Optional[int] = None) -> int: ...


class InMemoryStore:
    """Dict-backed store; versions start at 0 (absent) and bump on every write."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = {}
        self._versions: Dict[str, int] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def get_version(self, key: str) -> int:
        return self._versions.get(key, 0)

    def set(self, key: str, value: str, expected_version: Optional[int] = None) -> int:
        current = self.get_version(key)
        if expected_version is not None and expected_version != current:
            raise StaleSettingsError(f"'{key}' is at version {current}, expected {expected_version}")
        self._data[key] = value
        self._versions[key] = current + 1
        return current + 1


class SqlKeyValueStore:
    """settings_records table backed store with optimistic version checks.

    Writes are compare-and-set in a single statement: an UPDATE guarded by the
    expected version, or an INSERT guarded by the unique key. A write that loses
    either race raises StaleSettingsError. Without an expected version the write
    is retried against the latest version, so the last writer wins.
    """

    max_retries = 3

    def __init__(self, session_factory: Optional[Callable[[], Any]] = None):
        if session_factory is None:
            from tubex import get_db
            session_factory = get_db
        self.session_factory = session_factory

    def _column(self, column, key: str):
        # column queries bypass the identity map so they always see committed rows
        return self.session_factory().execute(select(column).where(SettingsRecord.key == key)).scalar_one_or_none()

    def get(self, key: str) -> Optional[str]:
        return self._column(SettingsRecord.value, key)

    def get_version(self, key: str) -> int:
        return self._column(SettingsRecord.version, key) or 0

    def _write(self, key: str, value: str, expected_version: int) -> int:
        session = self.session_factory()
        try:
            if expected_version == 0:
                session.add(SettingsRecord(key=key, value=value, version=1))
                session.flush()
            else:
                result = session.execute(
                    update(SettingsRecord)
                    .where(SettingsRecord.key == key, SettingsRecord.version == expected_version)
                    .values(value=value, version=expected_version + 1)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise StaleSettingsError(f"'{key}' is no longer at version {expected_version}")
            session.commit()
        except IntegrityError:
            session.rollback()
            raise StaleSettingsError(f"'{key}' was created by another writer")
        except StaleSettingsError:
            session.rollback()
            raise
        return expected_version + 1

    def set(self, key: str, value: str, expected_version: Optional[int] = None) -> int:
        if expected_version is not None:
            return self._write(key, value, expected_version)
        for _ in range(self.max_retries):
            try:
                return self._write(key, value, self.get_version(key))
            except StaleSettingsError:
                logger.debug('Concurrent write to %s; retrying', key)
        raise StaleSettingsError(f"'{key}' kept changing during the write")


# ---------------- Store ---------------- #

class SettingsStore:
    def __init__(self, store: KeyValueStore):
        self.store = store

    @staticmethod
    def company_key(company_id) -> str:
        return f"{COMPANY_KEY_PREFIX}{company_id}"

    @staticmethod
    def user_key(user_id) -> str:
        return f"{USER_OVERRIDE_KEY_PREFIX}{user_id}"

    def _load_record(self, key: str) -> Optional[Dict[str, Any]]:
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            parsed = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning('Failed to parse settings record %s; ignoring it', key)
            return None
        if not isinstance(parsed, dict):
            logger.warning('Settings record %s is not an object; ignoring it', key)
            return None
        for section in SECTIONS:
            if section in parsed and not isinstance(parsed[section], dict):
                logger.warning('Section %s of settings record %s is not an object; ignoring it', section, key)
                del parsed[section]
        return parsed

    def load_company_settings(self, company_id) -> Dict[str, Any]:
        stored = self._load_record(self.company_key(company_id))
        return merge_settings(DEFAULT_SETTINGS, stored or {})

    def load_user_overrides(self, user_id) -> Dict[str, Any]:
        return self._load_record(self.user_key(user_id)) or {}

    def get_effective_settings(self, company_id, user_id) -> Dict[str, Any]:
        return merge_settings(self.load_company_settings(company_id), self.load_user_overrides(user_id))

    def save_company_settings(self, company_id, settings: Mapping[str, Any], expected_version: Optional[int] = None) -> int:
        return self.store.set(self.company_key(company_id), json.dumps(settings), expected_version)

    def save_user_overrides(self, user_id, overrides: Mapping[str, Any], expected_version: Optional[int] = None) -> int:
        return self.store.set(self.user_key(user_id), json.dumps(overrides), expected_version)

    def company_version(self, company_id) -> int:
        return self.store.get_version(self.company_key(company_id))

    def overrides_version(self, user_id) -> int:
        return self.store.get_version(self.user_key(user_id))

    def reset_section(self, user_id, company_id, section: str) -> Dict[str, Any]:
        """Drop one section from the user's overrides so it falls back to company defaults."""
        validate_section(section)
        overrides = self.load_user_overrides(user_id)
        if section in overrides:
            del overrides[section]
            self.save_user_overrides(user_id, overrides)
        return self.get_effective_settings(company_id, user_id)


# ---------------- Per-user mutation layer ---------------- #

class CompanySettingsService:
    """Settings operations on behalf of an authenticated user.

    Company-scope writes are gated on the 'companySettings' permission.
    """

    def __init__(self, settings_store: SettingsStore, resolver_factory: Callable[[AccessUser], AccessResolver] = AccessResolver):
        self.settings_store = settings_store
        self.resolver_factory = resolver_factory

    def _require_user(self, user: Optional[AccessUser]) -> AccessUser:
        if user is None or user.company_id is None:
            raise SettingsPermissionError('Authenticated company user required')
        return user

    def is_company_admin(self, user: Optional[AccessUser]) -> bool:
        if user is None:
            return False
        return self.resolver_factory(user).has_permission('companySettings')

    def snapshot(self, user: Optional[AccessUser]) -> Dict[str, Any]:
        user = self._require_user(user)
        company = self.settings_store.load_company_settings(user.company_id)
        overrides = self.settings_store.load_user_overrides(user.user_id)
        return {
            'settings': merge_settings(company, overrides),
            'companySettings': company,
            'userOverrides': overrides,
            'isCompanyAdmin': self.is_company_admin(user),
            'overriddenSections': overridden_sections(overrides),
            'versions': {
                'company': self.settings_store.company_version(user.company_id),
                'user': self.settings_store.overrides_version(user.user_id),
            },
        }

    def update_settings(self, user: Optional[AccessUser], new_settings: Mapping[str, Any],
                        apply_to_company: bool = False, expected_version: Optional[int] = None) -> Dict[str, Any]:
        user = self._require_user(user)
        validate_settings(new_settings)
        store = self.settings_store
        company = store.load_company_settings(user.company_id)
        if apply_to_company:
            if not self.is_company_admin(user):
                raise SettingsPermissionError('Only company admins can apply settings company-wide')
            # the admin's personal overrides stay personal
            store.save_company_settings(user.company_id, merge_settings(company, new_settings), expected_version)
            logger.info('Company %s settings updated by user %s', user.company_id, user.user_id)
        else:
            current = merge_settings(company, store.load_user_overrides(user.user_id))
            updated = merge_settings(current, new_settings)
            store.save_user_overrides(user.user_id, extract_user_overrides(company, updated), expected_version)
        return self.snapshot(user)

    def apply_company_settings(self, user: Optional[AccessUser]) -> Dict[str, Any]:
        """Discard all of the user's overrides."""
        user = self._require_user(user)
        self.settings_store.save_user_overrides(user.user_id, {})
        return self.snapshot(user)

    def reset_settings_section(self, user: Optional[AccessUser], section: str) -> Dict[str, Any]:
        user = self._require_user(user)
        self.settings_store.reset_section(user.user_id, user.company_id, section)
        return self.snapshot(user)


__all__ = [
    'merge_settings', 'extract_user_overrides', 'has_section_override', 'overridden_sections', 'validate_section',
    'validate_settings',
    'KeyValueStore', 'InMemoryStore', 'SqlKeyValueStore', 'SettingsStore', 'CompanySettingsService',
]
