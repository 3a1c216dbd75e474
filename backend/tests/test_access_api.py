from tests.test_utils_seed import jwt_headers


def test_access_me_lists_permissions_and_nav(client, app_instance):
    headers = jwt_headers(app_instance, 101, 'staff', 1, 'dealer')
    resp = client.get('/access/me', headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['user'] == {'userId': '101', 'role': 'staff', 'companyId': '1', 'companyType': 'dealer'}
    assert body['permissions']['inventoryView'] is True
    assert body['permissions']['inventoryDelete'] is False
    assert '/inventory' in [i['path'] for i in body['navItems']]
    assert '/payments' not in [i['path'] for i in body['navItems']]


def test_access_check_pages_and_actions(client, app_instance):
    headers = jwt_headers(app_instance, 102, 'staff', 1, 'dealer')
    resp = client.get('/access/check?page=/inventory&action=inventory:view&action=inventoryDelete&action=bogus', headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['page'] == {'page': '/inventory', 'allowed': True}
    assert body['actions'] == {'inventory:view': True, 'inventoryDelete': False, 'bogus': False}

    profile = client.get('/access/check?page=/profile', headers=headers).get_json()
    assert profile['page']['allowed'] is True
    unknown = client.get('/access/check?page=/secret', headers=headers).get_json()
    assert unknown['page']['allowed'] is False


def test_unknown_role_token_resolves_closed(client, app_instance):
    headers = jwt_headers(app_instance, 103, 'supplier', 1, 'supplier')
    body = client.get('/access/me', headers=headers).get_json()
    assert not any(body['permissions'].values())
    assert body['navItems'] == []


def test_access_requires_token(client):
    assert client.get('/access/me').status_code == 401
