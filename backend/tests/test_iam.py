import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from steelshop import get_db
from steelshop.errors import ValidationError
from steelshop.models.user import Base, User
from steelshop.services.access import assert_not_removing_last_superadmin, count_active_superadmins
from test_utils_seed import ensure_user, login, unique_email, user_headers


def test_signup_creates_guest(client):
    email = unique_email('signup')
    resp = client.post('/iam/auth/signup', json={'email': email, 'password': 'secret1', 'full_name': 'New Person'})
    assert resp.status_code == 201, resp.get_json()
    assert resp.get_json()['role'] == 'guest'
    dup = client.post('/iam/auth/signup', json={'email': email, 'password': 'secret1'})
    assert dup.status_code == 409
    short = client.post('/iam/auth/signup', json={'email': unique_email(), 'password': 'x'})
    assert short.status_code == 400
    numeric = client.post('/iam/auth/signup', json={'email': unique_email(), 'password': 1234567})
    assert numeric.status_code == 400
    assert client.post('/iam/auth/signup', json={'email': 12345, 'password': 'secret1'}).status_code == 400


def test_login_and_me(client):
    user = ensure_user(unique_email('me'), role='clerk')
    headers = login(client, user.email)
    me = client.get('/iam/auth/me', headers=headers)
    assert me.status_code == 200
    body = me.get_json()
    assert body['email'] == user.email
    assert body['role'] == 'clerk'
    assert body['landing_path'] == '/'


def test_login_rejects_bad_credentials(client):
    user = ensure_user(unique_email('bad'))
    resp = client.post('/iam/auth/login', json={'email': user.email, 'password': 'nope'})
    assert resp.status_code == 401
    assert resp.get_json()['redirect'] == '/auth'
    assert client.post('/iam/auth/login', json={}).status_code == 400


def test_login_rejects_non_string_fields(client):
    user = ensure_user(unique_email('types'))
    resp = client.post('/iam/auth/login', json={'email': 12345, 'password': 'pw'})
    assert resp.status_code == 400
    assert resp.get_json()['error']['status'] == 400
    assert client.post('/iam/auth/login', json={'email': user.email, 'password': 1234567}).status_code == 400
    assert client.post('/iam/auth/login', json={'email': user.email, 'password': ['pw']}).status_code == 400


def test_me_requires_token(client):
    resp = client.get('/iam/auth/me')
    assert resp.status_code == 401
    assert resp.get_json()['redirect'] == '/auth'


def test_inactive_user_is_treated_as_absent(client):
    user = ensure_user(unique_email('inactive'), role='clerk')
    headers = login(client, user.email)
    from steelshop import get_db
    user.is_active = False
    get_db().commit()
    assert client.get('/iam/auth/me', headers=headers).status_code == 401


def test_user_admin_is_superadmin_only(client):
    _, headers = user_headers(client, 'supervisor')
    assert client.get('/iam/users', headers=headers).status_code == 403
    assert client.get('/iam/users/stats', headers=headers).status_code == 403


def test_role_change_applies_on_next_request(client):
    _, admin_headers = user_headers(client, 'superadmin')
    guest, guest_headers = user_headers(client, 'guest')
    assert client.get('/production/queue', headers=guest_headers).status_code == 403
    resp = client.put(f'/iam/users/{guest.id}/role', json={'role': 'cutter'}, headers=admin_headers)
    assert resp.status_code == 200, resp.get_json()
    assert resp.get_json()['role'] == 'cutter'
    # same token, role re-read from the user store
    assert client.get('/production/queue', headers=guest_headers).status_code == 200


def test_unknown_role_rejected(client):
    _, admin_headers = user_headers(client, 'superadmin')
    target = ensure_user(unique_email('target'))
    resp = client.put(f'/iam/users/{target.id}/role', json={'role': 'janitor'}, headers=admin_headers)
    assert resp.status_code == 400
    assert client.put('/iam/users/999999/role', json={'role': 'clerk'}, headers=admin_headers).status_code == 404


def test_user_listing_and_stats(client):
    _, admin_headers = user_headers(client, 'superadmin')
    ensure_user(unique_email('listed'), role='delivery')
    listing = client.get('/iam/users?role=delivery', headers=admin_headers)
    assert listing.status_code == 200
    assert all(u['role'] == 'delivery' for u in listing.get_json()['data'])
    assert client.get('/iam/users?role=janitor', headers=admin_headers).status_code == 400
    stats = client.get('/iam/users/stats', headers=admin_headers).get_json()
    assert sum(stats['roles'].values()) == stats['total']
    assert stats['roles']['delivery'] >= 1


def test_cannot_delete_self(client):
    admin, admin_headers = user_headers(client, 'superadmin')
    resp = client.delete(f'/iam/users/{admin.id}', headers=admin_headers)
    assert resp.status_code == 400


def test_delete_user(client):
    _, admin_headers = user_headers(client, 'superadmin')
    victim = ensure_user(unique_email('victim'), role='cutter')
    assert client.delete(f'/iam/users/{victim.id}', headers=admin_headers).status_code == 200
    assert client.delete(f'/iam/users/{victim.id}', headers=admin_headers).status_code == 404


def test_last_superadmin_guard_over_http(client, monkeypatch):
    import steelshop.services.access as access_mod
    _, admin_headers = user_headers(client, 'superadmin')
    other = ensure_user(unique_email('other-admin'), role='superadmin')
    # The shared test database always holds several superadmins; the real count
    # query is covered against an isolated session below.
    assert count_active_superadmins(get_db()) >= 2
    monkeypatch.setattr(access_mod, 'count_active_superadmins', lambda session: 1)
    resp = client.put(f'/iam/users/{other.id}/role', json={'role': 'clerk'}, headers=admin_headers)
    assert resp.status_code == 400
    assert 'last superadmin' in resp.get_json()['error']['detail']
    assert client.delete(f'/iam/users/{other.id}', headers=admin_headers).status_code == 400


@pytest.fixture()
def isolated_session():
    engine = create_engine('sqlite+pysqlite:///:memory:')
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine)()
    yield session
    session.close()


def _user(session, email, role):
    u = User(email=email, role=role, password_hash='x')
    session.add(u); session.commit()
    return u


def test_last_superadmin_cannot_be_demoted_or_removed(isolated_session):
    admin = _user(isolated_session, 'only@example.com', 'superadmin')
    assert count_active_superadmins(isolated_session) == 1
    with pytest.raises(ValidationError):
        assert_not_removing_last_superadmin(isolated_session, admin, 'clerk')
    with pytest.raises(ValidationError):
        assert_not_removing_last_superadmin(isolated_session, admin)
    assert_not_removing_last_superadmin(isolated_session, admin, 'superadmin')
    _user(isolated_session, 'second@example.com', 'superadmin')
    assert_not_removing_last_superadmin(isolated_session, admin, 'clerk')
