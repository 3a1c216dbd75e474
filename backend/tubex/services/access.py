"""Permission resolution for an authenticated user.

Every lookup here is fail-closed: a missing user, an unknown role or company type,
an unrecognised page, action or permission key all resolve to False. Nothing in this
module raises for bad input.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from tubex.constants.permissions import (
    NAV_ITEMS,
    PAGE_PERMISSIONS,
    PERMISSION_KEYS,
    PROFILE_PAGE,
    ROLE_PERMISSIONS,
    empty_permissions,
    matrix_key,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessUser:
    user_id: str
    role: Optional[str]
    company_id: Optional[str]
    company_type: Optional[str]

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> Optional['AccessUser']:
        """Build from JWT claims; None when identity or company type is missing."""
        if not claims:
            return None
        sub = claims.get('sub')
        company_type = claims.get('company_type')
        if sub is None or not company_type:
            return None
        company_id = claims.get('company_id')
        return cls(
            user_id=str(sub),
            role=claims.get('role'),
            company_id=str(company_id) if company_id is not None else None,
            company_type=company_type,
        )


class Resource(str, Enum):
    PRODUCT = 'product'
    INVENTORY = 'inventory'
    WAREHOUSE = 'warehouse'
    ORDER = 'order'
    QUOTE = 'quote'
    INVOICE = 'invoice'
    PAYMENT = 'payment'
    USER = 'user'
    PRICE_LIST = 'price-list'
    REPORT = 'report'
    SETTINGS = 'settings'

    @property
    def camel(self) -> str:
        head, *rest = self.value.split('-')
        return head + ''.join(part.capitalize() for part in rest)


class Verb(str, Enum):
    VIEW = 'view'
    CREATE = 'create'
    EDIT = 'edit'
    DELETE = 'delete'
    APPROVE = 'approve'
    EXPORT = 'export'


_RESOURCES_BY_CAMEL = {r.camel: r for r in Resource}


@dataclass(frozen=True)
class Action:
    resource: Resource
    verb: Verb

    @property
    def permission_key(self) -> str:
        return f"{self.resource.camel}{self.verb.value.capitalize()}"

    @classmethod
    def parse(cls, text: Any) -> Optional['Action']:
        """Normalise 'resource:verb' or 'resourceVerb' into an Action.

        Returns None for anything that does not name a permission in the matrix.
        """
        if not isinstance(text, str) or not text:
            return None
        resource = verb = None
        if ':' in text:
            resource_raw, verb_raw = text.split(':', 1)
            try:
                resource = Resource(resource_raw)
                verb = Verb(verb_raw)
            except ValueError:
                return None
        else:
            for candidate in Verb:
                suffix = candidate.value.capitalize()
                if text.endswith(suffix):
                    resource = _RESOURCES_BY_CAMEL.get(text[:-len(suffix)])
                    verb = candidate
                    break
            if resource is None:
                return None
        action = cls(resource, verb)
        if action.permission_key not in PERMISSION_KEYS:
            return None
        return action

    def __str__(self) -> str:
        return f"{self.resource.value}:{self.verb.value}"


def get_user_permissions(user: Optional[AccessUser], matrix: Mapping[str, Mapping[str, bool]] = ROLE_PERMISSIONS) -> Dict[str, bool]:
    perms = empty_permissions()
    if user is None or not user.role or not user.company_type:
        return perms
    granted = matrix.get(matrix_key(user.company_type, user.role))
    if not granted:
        return perms
    for key, value in granted.items():
        perms[key] = bool(value)
    return perms


class AccessResolver:
    """Answers can-access / can-perform questions for one user.

    The matrix and page table are passed in so callers (and tests) can supply their own.
    """

    def __init__(self, user: Optional[AccessUser], matrix: Mapping[str, Mapping[str, bool]] = ROLE_PERMISSIONS,
                 pages: Mapping[str, str] = PAGE_PERMISSIONS):
        self.user = user
        self.pages = pages
        self._permissions = get_user_permissions(user, matrix)

    @property
    def permissions(self) -> Dict[str, bool]:
        return dict(self._permissions)

    def has_permission(self, key: str) -> bool:
        if self.user is None:
            return False
        return self._permissions.get(key, False) is True

    def has_all(self, keys: Iterable[str]) -> bool:
        return all(self.has_permission(k) for k in keys)

    def has_any(self, keys: Iterable[str]) -> bool:
        return any(self.has_permission(k) for k in keys)

    def can_access(self, page: str) -> bool:
        if self.user is None:
            return False
        if page == PROFILE_PAGE:
            return True
        key = self.pages.get(page)
        if key is None:
            logger.debug('can_access: unknown page %r', page)
            return False
        return self.has_permission(key)

    def can_perform(self, action: str, context: Any = None) -> bool:
        # context is accepted for call-site symmetry; no rule consults it yet
        if self.user is None:
            return False
        parsed = Action.parse(action)
        if parsed is None:
            logger.debug('can_perform: unrecognised action %r', action)
            return False
        return self.has_permission(parsed.permission_key)

    def can_perform_all(self, actions: Iterable[str]) -> bool:
        return all(self.can_perform(a) for a in actions)

    def can_perform_any(self, actions: Iterable[str]) -> bool:
        return any(self.can_perform(a) for a in actions)

    def available_nav_items(self) -> List[Dict[str, str]]:
        return [
            {'path': path, 'label': label, 'icon': icon}
            for path, label, icon in NAV_ITEMS
            if self.can_access(path)
        ]


__all__ = ['AccessUser', 'Resource', 'Verb', 'Action', 'AccessResolver', 'get_user_permissions']
