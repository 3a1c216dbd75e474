import pytest
from tubex.constants.permissions import PAGE_PERMISSIONS, PERMISSION_KEYS, ROLE_PERMISSIONS
from tubex.services.access import AccessResolver, AccessUser, Action, Resource, Verb, get_user_permissions

KNOWN_PAIRS = [tuple(k.split('-', 1)) for k in ROLE_PERMISSIONS]  # (company_type, role)


def _user(role='staff', company_type='dealer'):
    return AccessUser(user_id='u1', role=role, company_id='c1', company_type=company_type)


@pytest.mark.parametrize('role', ['dealer', 'supplier', 'owner', '', None, 'ADMIN'])
def test_unknown_roles_get_no_permissions(role):
    perms = get_user_permissions(_user(role=role))
    assert set(perms) == set(PERMISSION_KEYS)
    assert not any(perms.values())


def test_missing_user_or_company_type_fails_closed():
    assert not any(get_user_permissions(None).values())
    assert not any(get_user_permissions(_user(role='admin', company_type=None)).values())
    assert not any(get_user_permissions(_user(role='admin', company_type='retailer')).values())
    resolver = AccessResolver(None)
    assert resolver.can_access('/dashboard') is False
    assert resolver.can_access('/profile') is False
    assert resolver.can_perform('inventory:view') is False
    assert resolver.has_permission('dashboard') is False


def test_returned_permissions_are_copies():
    perms = get_user_permissions(_user(role='staff'))
    perms['inventoryDelete'] = True
    assert ROLE_PERMISSIONS['dealer-staff']['inventoryDelete'] is False
    resolver = AccessResolver(_user())
    resolver.permissions['inventoryDelete'] = True
    assert resolver.can_perform('inventory:delete') is False


@pytest.mark.parametrize('company_type,role', KNOWN_PAIRS)
def test_profile_always_accessible(company_type, role):
    assert AccessResolver(_user(role=role, company_type=company_type)).can_access('/profile') is True


def test_profile_accessible_even_for_unknown_role():
    assert AccessResolver(_user(role='mystery')).can_access('/profile') is True


@pytest.mark.parametrize('page', ['/nope', '', '/inventory/', '/INVENTORY', 'inventory', '/profile/edit', None])
def test_unrecognised_pages_denied(page):
    assert AccessResolver(_user(role='admin')).can_access(page) is False


@pytest.mark.parametrize('company_type,role', KNOWN_PAIRS)
def test_pages_follow_matrix(company_type, role):
    resolver = AccessResolver(_user(role=role, company_type=company_type))
    for page, key in PAGE_PERMISSIONS.items():
        assert resolver.can_access(page) is ROLE_PERMISSIONS[f"{company_type}-{role}"][key]


@pytest.mark.parametrize('company_type,role', KNOWN_PAIRS)
def test_colon_and_camel_spellings_agree(company_type, role):
    resolver = AccessResolver(_user(role=role, company_type=company_type))
    for resource in Resource:
        for verb in Verb:
            colon = f"{resource.value}:{verb.value}"
            camel = f"{resource.camel}{verb.value.capitalize()}"
            assert resolver.can_perform(colon, {'id': 1}) == resolver.can_perform(camel, {'id': 1}), colon


def test_staff_dealer_scenario():
    resolver = AccessResolver(_user(role='staff', company_type='dealer'))
    assert resolver.permissions['inventoryView'] is True
    assert resolver.permissions['inventoryDelete'] is False
    assert resolver.can_perform('inventory:view') is True
    assert resolver.can_perform('inventory:delete') is False
    assert resolver.can_access('/inventory') is True
    assert resolver.can_access('/payments') is False


@pytest.mark.parametrize('action', [
    'inventory:frobnicate', 'widget:view', 'inventory', ':view', 'inventory:', 'Inventory:view',
    'inventoryfrobnicate', 'product:approve', 'productApprove', 'settings:delete', '', None, 42,
])
def test_unrecognised_actions_denied(action):
    resolver = AccessResolver(_user(role='admin', company_type='supplier'))
    assert resolver.can_perform(action) is False


def test_action_parse_normalises_both_spellings():
    a = Action.parse('price-list:edit')
    b = Action.parse('priceListEdit')
    assert a == b == Action(Resource.PRICE_LIST, Verb.EDIT)
    assert a.permission_key == 'priceListEdit'
    assert str(a) == 'price-list:edit'
    assert Action.parse('report:export').permission_key == 'reportExport'
    assert Action.parse('settings:edit').permission_key == 'settingsEdit'


def test_export_and_settings_edit_use_their_own_keys():
    staff = AccessResolver(_user(role='staff', company_type='dealer'))
    assert staff.can_perform('settings:view') is True
    assert staff.can_perform('settings:edit') is False
    manager = AccessResolver(_user(role='manager', company_type='dealer'))
    assert manager.can_perform('report:export') is True


def test_unknown_permission_key_is_false():
    resolver = AccessResolver(_user(role='admin', company_type='dealer'))
    assert resolver.has_permission('launchMissiles') is False
    assert resolver.has_all(['dashboard', 'launchMissiles']) is False
    assert resolver.has_any(['dashboard', 'launchMissiles']) is True


def test_injected_matrix_is_used_and_missing_keys_default_false():
    matrix = {'dealer-staff': {'inventoryView': True}}
    resolver = AccessResolver(_user(), matrix=matrix)
    assert resolver.can_perform('inventoryView') is True
    assert resolver.can_perform('inventoryEdit') is False
    assert resolver.can_access('/dashboard') is False
    assert set(resolver.permissions) == set(PERMISSION_KEYS)


def test_injected_page_table():
    resolver = AccessResolver(_user(), pages={'/stock': 'inventoryView'})
    assert resolver.can_access('/stock') is True
    assert resolver.can_access('/inventory') is False


def test_perform_all_any():
    resolver = AccessResolver(_user(role='manager', company_type='dealer'))
    assert resolver.can_perform_all(['order:create', 'order:edit']) is True
    assert resolver.can_perform_all(['order:create', 'order:approve']) is False
    assert resolver.can_perform_any(['order:approve', 'orderCreate']) is True
    assert resolver.can_perform_any(['order:approve', 'bogus']) is False


def test_nav_items_follow_page_access():
    items = AccessResolver(_user(role='staff', company_type='supplier')).available_nav_items()
    paths = [i['path'] for i in items]
    assert paths == ['/dashboard', '/products', '/inventory', '/warehouses', '/quotes',
                     '/invoices', '/payments', '/price-lists', '/settings']
    assert items[0] == {'path': '/dashboard', 'label': 'Dashboard', 'icon': 'dashboard'}
    assert AccessResolver(None).available_nav_items() == []


def test_access_user_from_claims():
    u = AccessUser.from_claims({'sub': '7', 'role': 'admin', 'company_id': 3, 'company_type': 'dealer'})
    assert u == AccessUser(user_id='7', role='admin', company_id='3', company_type='dealer')
    assert AccessUser.from_claims({'sub': '7', 'role': 'admin', 'company_id': 3}) is None
    assert AccessUser.from_claims({'role': 'admin', 'company_type': 'dealer'}) is None
    assert AccessUser.from_claims({}) is None
