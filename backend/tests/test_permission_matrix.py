import pytest
from tubex.constants.permissions import (
    PERMISSION_KEYS, ROLE_PERMISSIONS, PAGE_PERMISSIONS, NAV_ITEMS, COMPANY_TYPES,
    empty_permissions, can_manage_user, can_assign_role,
)


def test_every_matrix_entry_defines_every_key():
    for name, perms in ROLE_PERMISSIONS.items():
        missing = sorted(set(PERMISSION_KEYS) - set(perms))
        extra = sorted(set(perms) - set(PERMISSION_KEYS))
        assert not missing, f"{name} missing keys: {missing}"
        assert not extra, f"{name} has unknown keys: {extra}"
        assert all(isinstance(v, bool) for v in perms.values())


def test_matrix_covers_company_type_role_combinations():
    expected = {f"{ct}-{r}" for ct in COMPANY_TYPES for r in ('admin', 'manager', 'staff')}
    assert set(ROLE_PERMISSIONS) == expected


def test_page_and_nav_tables_reference_known_keys():
    assert set(PAGE_PERMISSIONS.values()) <= set(PERMISSION_KEYS)
    assert [path for path, _, _ in NAV_ITEMS] == list(PAGE_PERMISSIONS)


def test_empty_permissions_is_all_false_and_fresh():
    a = empty_permissions()
    a['dashboard'] = True
    assert not any(empty_permissions().values())
    assert len(a) == len(PERMISSION_KEYS) == 46


def test_business_rules_in_matrix():
    # suppliers receive orders and payments, dealers place them
    assert ROLE_PERMISSIONS['supplier-admin']['orderCreate'] is False
    assert ROLE_PERMISSIONS['supplier-admin']['paymentCreate'] is False
    assert ROLE_PERMISSIONS['dealer-admin']['orderCreate'] is True
    assert ROLE_PERMISSIONS['dealer-admin']['paymentCreate'] is True
    # only admins manage company-wide settings
    admins = {k for k, v in ROLE_PERMISSIONS.items() if v['companySettings']}
    assert admins == {'supplier-admin', 'dealer-admin'}


@pytest.mark.parametrize('manager,target,manage,assign', [
    ('admin', 'manager', True, True),
    ('admin', 'admin', False, True),
    ('manager', 'staff', True, True),
    ('manager', 'admin', False, False),
    ('staff', 'staff', False, True),
    ('dealer', 'staff', False, False),
    ('admin', 'supplier', False, False),
    ('admin', 'superuser', False, False),
    ('manager', '', False, False),
])
def test_role_hierarchy(manager, target, manage, assign):
    assert can_manage_user(manager, target) is manage
    assert can_assign_role(manager, target) is assign
