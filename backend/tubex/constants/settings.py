"""Baseline company settings and storage key prefixes.

DEFAULT_SETTINGS is the full shape every effective settings record must have; stored
company records are merged over it on load. Treat it as read-only, callers get copies.
"""
from __future__ import annotations
from typing import Any, Dict

SECTIONS = ('appearance', 'notifications', 'integrations')

DEFAULT_SETTINGS: Dict[str, Any] = {
    'appearance': {
        'darkMode': False,
        'fontSize': 16,
        'language': 'en',
        # optional 'theme' mapping may be added by admins
    },
    'notifications': {
        'email': True,
        'push': True,
        'newOrders': True,
        'inventory': True,
    },
    'integrations': {
        'apiKey': '',
        'connectedServices': [
            {'id': 1, 'name': 'Warehouse System', 'connected': False},
            {'id': 2, 'name': 'Accounting Software', 'connected': False},
            {'id': 3, 'name': 'CRM System', 'connected': False},
        ],
    },
}

COMPANY_KEY_PREFIX = 'tubex_company_'
USER_OVERRIDE_KEY_PREFIX = 'tubex_user_'
