# tests/test_admin.py

from db.extensions import db
from models.user import User


def test_admin_routes_require_admin_role(client, auth_headers, owner, player):
    assert client.get('/api/admin/dashboard').status_code == 401
    assert client.get('/api/admin/dashboard', headers=auth_headers(player)).status_code == 403
    assert client.get('/api/admin/dashboard', headers=auth_headers(owner)).status_code == 403


def test_dashboard_counts(client, auth_headers, admin, player, owner, ground):
    resp = client.get('/api/admin/dashboard', headers=auth_headers(admin))
    assert resp.status_code == 200
    stats = resp.get_json()['data']
    assert stats['users']['total'] == 3
    assert stats['users']['byRole'] == {'player': 1, 'facility_owner': 1, 'admin': 1}
    assert stats['grounds']['byStatus']['active'] == 1
    assert stats['grounds']['unverified'] == 1
    assert stats['bookings']['total'] == 0
    assert stats['revenue']['total'] == 0


def test_list_and_get_users(client, auth_headers, admin, player, owner, ground):
    resp = client.get('/api/admin/users?role=facility_owner', headers=auth_headers(admin))
    assert [u['id'] for u in resp.get_json()['data']['users']] == [owner.id]

    search = client.get('/api/admin/users?search=player', headers=auth_headers(admin)).get_json()['data']
    assert search['pagination']['total'] == 1

    detail = client.get(f'/api/admin/users/{owner.id}', headers=auth_headers(admin)).get_json()['data']
    assert detail['stats']['totalGrounds'] == 1
    assert client.get('/api/admin/users/nobody', headers=auth_headers(admin)).status_code == 404


def test_role_and_status_changes(client, auth_headers, admin, player):
    resp = client.put(f'/api/admin/users/{player.id}/role', json={'role': 'facility_owner'},
                      headers=auth_headers(admin))
    assert resp.status_code == 200
    assert resp.get_json()['data']['role'] == 'facility_owner'

    bad_role = client.put(f'/api/admin/users/{player.id}/role', json={'role': 'superuser'},
                          headers=auth_headers(admin))
    assert bad_role.status_code == 400

    suspended = client.put(f'/api/admin/users/{player.id}/status',
                           json={'status': 'suspended', 'reason': 'Repeated no-shows'},
                           headers=auth_headers(admin))
    assert suspended.status_code == 200
    assert db.session.get(User, player.id).status == 'suspended'

    blocked = client.get('/api/bookings/user', headers=auth_headers(player))
    assert blocked.status_code == 403
    assert blocked.get_json()['error'] == 'ACCOUNT_INACTIVE'


def test_admin_cannot_change_own_account(client, auth_headers, admin):
    assert client.put(f'/api/admin/users/{admin.id}/role', json={'role': 'player'},
                      headers=auth_headers(admin)).status_code == 403
    assert client.put(f'/api/admin/users/{admin.id}/status', json={'status': 'inactive'},
                      headers=auth_headers(admin)).status_code == 403


def test_ground_moderation(client, auth_headers, admin, ground):
    listed = client.get('/api/admin/grounds?verified=false', headers=auth_headers(admin)).get_json()['data']
    assert [g['groundId'] for g in listed['grounds']] == [ground.ground_id]

    verified = client.put(f'/api/admin/grounds/{ground.ground_id}/verify', headers=auth_headers(admin))
    assert verified.status_code == 200
    assert verified.get_json()['data']['isVerified'] is True

    suspended = client.put(f'/api/admin/grounds/{ground.ground_id}/status',
                           json={'status': 'suspended'}, headers=auth_headers(admin))
    assert suspended.get_json()['data']['status'] == 'suspended'
    assert client.get('/api/grounds').get_json()['data']['pagination']['total'] == 0

    bad = client.put(f'/api/admin/grounds/{ground.ground_id}/status',
                     json={'status': 'demolished'}, headers=auth_headers(admin))
    assert bad.status_code == 400


def test_review_moderation(client, auth_headers, admin, player, ground):
    review_id = client.post('/api/reviews', json={
        'groundId': ground.ground_id,
        'rating': 1,
        'content': 'Terrible, absolutely terrible.',
    }, headers=auth_headers(player)).get_json()['data']['reviewId']

    resp = client.put(f'/api/admin/reviews/{review_id}/moderate',
                      json={'status': 'hidden', 'reason': 'Abusive'}, headers=auth_headers(admin))
    assert resp.status_code == 200
    assert resp.get_json()['data']['isModerated'] is True

    db.session.refresh(ground)
    assert ground.total_reviews == 0
