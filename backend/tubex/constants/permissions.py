"""Central role/company-type permission matrix.

Keys are camelCase resource+action flags consumed by guards and the access resolver.
Extend cautiously; never rename keys silently, every entry in ROLE_PERMISSIONS must
carry every key in PERMISSION_KEYS.
"""
from __future__ import annotations
from typing import Dict, List, Tuple

ROLES = ('admin', 'manager', 'staff', 'dealer', 'supplier')
COMPANY_TYPES = ('supplier', 'dealer')

RESOURCE_ACTIONS = {
    'product': ['View', 'Create', 'Edit', 'Delete'],
    'inventory': ['View', 'Create', 'Edit', 'Delete'],
    'warehouse': ['View', 'Create', 'Edit', 'Delete'],
    'order': ['View', 'Create', 'Edit', 'Delete', 'Approve'],
    'quote': ['View', 'Create', 'Edit', 'Delete', 'Approve'],
    'invoice': ['View', 'Create', 'Edit', 'Delete'],
    'payment': ['View', 'Create', 'Edit', 'Delete'],
    'user': ['View', 'Create', 'Edit', 'Delete'],
    'priceList': ['View', 'Create', 'Edit', 'Delete'],
    'report': ['View', 'Create', 'Export'],
    'settings': ['View', 'Edit'],
}


def build_all_permission_keys() -> List[str]:
    keys: List[str] = ['dashboard', 'analytics']
    for resource, actions in RESOURCE_ACTIONS.items():
        for act in actions:
            keys.append(f"{resource}{act}")
    keys.append('companySettings')
    return keys

PERMISSION_KEYS = build_all_permission_keys()


def empty_permissions() -> Dict[str, bool]:
    return {k: False for k in PERMISSION_KEYS}


def _grant(*keys: str) -> Dict[str, bool]:
    perms = empty_permissions()
    for k in keys:
        if k not in perms:
            raise KeyError(f"Unknown permission key '{k}'")
        perms[k] = True
    return perms


def matrix_key(company_type, role) -> str:
    return f"{company_type}-{role}"


ROLE_PERMISSIONS: Dict[str, Dict[str, bool]] = {
    # Suppliers receive orders and payments, they never create them
    'supplier-admin': _grant(
        'dashboard', 'analytics',
        'productView', 'productCreate', 'productEdit', 'productDelete',
        'inventoryView', 'inventoryCreate', 'inventoryEdit', 'inventoryDelete',
        'warehouseView', 'warehouseCreate', 'warehouseEdit', 'warehouseDelete',
        'orderView', 'orderEdit', 'orderApprove',
        'quoteView', 'quoteCreate', 'quoteEdit', 'quoteDelete', 'quoteApprove',
        'invoiceView', 'invoiceCreate', 'invoiceEdit', 'invoiceDelete',
        'paymentView', 'paymentEdit',
        'userView', 'userCreate', 'userEdit', 'userDelete',
        'priceListView', 'priceListCreate', 'priceListEdit', 'priceListDelete',
        'reportView', 'reportCreate', 'reportExport',
        'settingsView', 'settingsEdit', 'companySettings',
    ),
    'supplier-manager': _grant(
        'dashboard', 'analytics',
        'productView', 'productCreate', 'productEdit',
        'inventoryView', 'inventoryCreate', 'inventoryEdit',
        'warehouseView', 'warehouseCreate', 'warehouseEdit',
        'orderView', 'orderEdit', 'orderApprove',
        'quoteView', 'quoteCreate', 'quoteEdit', 'quoteApprove',
        'invoiceView', 'invoiceCreate', 'invoiceEdit',
        'paymentView',
        'userView', 'userCreate', 'userEdit',
        'priceListView', 'priceListEdit',
        'reportView', 'reportCreate', 'reportExport',
        'settingsView',
    ),
    'supplier-staff': _grant(
        'dashboard',
        'productView',
        'inventoryView', 'inventoryEdit',
        'warehouseView',
        'quoteView',
        'invoiceView',
        'paymentView',
        'priceListView',
        'settingsView',
    ),
    # Dealers order from suppliers, pay them and receive their invoices
    'dealer-admin': _grant(
        'dashboard', 'analytics',
        'productView', 'productCreate',
        'inventoryView', 'inventoryEdit',
        'warehouseView', 'warehouseCreate', 'warehouseEdit', 'warehouseDelete',
        'orderView', 'orderCreate', 'orderEdit', 'orderDelete', 'orderApprove',
        'quoteView',
        'invoiceView',
        'paymentView', 'paymentCreate', 'paymentEdit', 'paymentDelete',
        'userView', 'userCreate', 'userEdit', 'userDelete',
        'priceListView',
        'reportView', 'reportCreate', 'reportExport',
        'settingsView', 'settingsEdit', 'companySettings',
    ),
    'dealer-manager': _grant(
        'dashboard', 'analytics',
        'productView', 'productCreate',
        'inventoryView', 'inventoryEdit',
        'warehouseView', 'warehouseCreate', 'warehouseEdit',
        'orderView', 'orderCreate', 'orderEdit',
        'quoteView',
        'invoiceView',
        'paymentView',
        'userView',
        'priceListView',
        'reportView', 'reportCreate', 'reportExport',
        'settingsView',
    ),
    'dealer-staff': _grant(
        'dashboard',
        'productView',
        'inventoryView',
        'warehouseView',
        'orderView',
        'quoteView',
        'invoiceView',
        'priceListView',
        'settingsView',
    ),
}

# Role hierarchy: admin > manager > staff. Roles absent here rank 0.
ROLE_HIERARCHY: Dict[str, int] = {
    'admin': 3,
    'manager': 2,
    'staff': 1,
}


def can_manage_user(manager_role: str, target_role: str) -> bool:
    if target_role not in ROLE_HIERARCHY:
        return False
    return ROLE_HIERARCHY.get(manager_role, 0) > ROLE_HIERARCHY[target_role]


def can_assign_role(manager_role: str, target_role: str) -> bool:
    if target_role not in ROLE_HIERARCHY:
        return False
    manager_rank = ROLE_HIERARCHY.get(manager_role, 0)
    return manager_rank > 0 and manager_rank >= ROLE_HIERARCHY[target_role]


PAGE_PERMISSIONS: Dict[str, str] = {
    '/dashboard': 'dashboard',
    '/analytics': 'analytics',
    '/products': 'productView',
    '/inventory': 'inventoryView',
    '/warehouses': 'warehouseView',
    '/orders': 'orderView',
    '/quotes': 'quoteView',
    '/invoices': 'invoiceView',
    '/payments': 'paymentView',
    '/users': 'userView',
    '/price-lists': 'priceListView',
    '/reports': 'reportView',
    '/settings': 'settingsView',
}

# Every authenticated user may open their own profile
PROFILE_PAGE = '/profile'

# (path, label, icon) in menu order
NAV_ITEMS: List[Tuple[str, str, str]] = [
    ('/dashboard', 'Dashboard', 'dashboard'),
    ('/analytics', 'Analytics', 'analytics'),
    ('/products', 'Products', 'inventory'),
    ('/inventory', 'Inventory', 'storage'),
    ('/warehouses', 'Warehouses', 'warehouse'),
    ('/orders', 'Orders', 'shopping_cart'),
    ('/quotes', 'Quotes', 'request_quote'),
    ('/invoices', 'Invoices', 'receipt'),
    ('/payments', 'Payments', 'payment'),
    ('/users', 'Users', 'people'),
    ('/price-lists', 'Price Lists', 'price_list'),
    ('/reports', 'Reports', 'assessment'),
    ('/settings', 'Settings', 'settings'),
]
