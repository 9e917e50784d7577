import re
import pytest
from models import Donation
from routes.admin import review_card

DONATIONS = {"donations": [
    {"id": 1, "user_name": "Aina Rahman", "user_email": "aina@test.com",
     "location_name": "Kuantan City Mall", "bin_code": "BIN001", "status": "approved",
     "media_url": "/uploads/1.webm"},
    {"id": 2, "user_name": "Ben Lee", "user_email": "ben@example.org",
     "location_name": "IIUM Kuantan", "bin_code": "BIN002", "status": "pending_admin"},
    {"id": 3, "user_name": "Chong Wei", "user_email": "chong@test.com",
     "location_name": "Teluk Cempedak Beach", "bin_code": "BIN004", "status": "rejected"},
]}

PENDING = {"donations": [
    # ~1.1 km from the bin
    {"id": 10, "user_name": "Far Away", "user_email": "far@test.com",
     "location_name": "Kuantan City Mall", "bin_code": "BIN001",
     "media_latitude": 3.8267, "media_longitude": 103.3262,
     "bin_latitude": 3.8167, "bin_longitude": 103.3262,
     "media_url": "/uploads/10.webm", "verification_notes": "WARNING: 1112m away from bin"},
    # Right at the bin
    {"id": 11, "user_name": "Close By", "user_email": "close@test.com",
     "location_name": "IIUM Kuantan", "bin_code": "BIN002",
     "media_latitude": 3.8167, "media_longitude": 103.3262,
     "bin_latitude": 3.8167, "bin_longitude": 103.3263,
     "verification_notes": "Location verified"},
]}


# ==========================================
#  1. ACCESS GATING
# ==========================================
@pytest.mark.parametrize("path", ['/admin', '/admin/pending', '/admin/donations',
                                  '/admin/users', '/admin/users/1', '/admin/settings'])
def test_admin_pages_turn_away_regular_users(user_client, backend, path):
    response = user_client.get(path)

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/dashboard')
    assert backend.calls == []
    with user_client.session_transaction() as sess:
        assert ('error', 'Admin access only!') in sess['_flashes']


def test_admin_actions_turn_away_regular_users(user_client, backend):
    response = user_client.post('/admin/donations/1/approve')
    assert response.status_code == 302
    assert backend.calls == []


def test_admin_pages_require_login(client):
    response = client.get('/admin')
    assert response.status_code == 302
    assert '/login' in response.headers['Location']


# ==========================================
#  2. DASHBOARD
# ==========================================
def test_admin_dashboard_stats(admin_client, backend):
    backend.ok('GET', '/admin/stats', {
        "totalDonations": 40, "pendingReview": 3, "approvedToday": 5,
        "totalUsers": 12, "totalVouchers": 8,
    })

    html = admin_client.get('/admin').get_data(as_text=True)

    assert '3 donations waiting for review' in html
    assert '<strong>5</strong> Approved today' in html
    assert '<strong>12</strong> Total users' in html
    assert '<strong>40</strong> Total donations' in html


def test_admin_dashboard_nothing_pending(admin_client, backend):
    backend.ok('GET', '/admin/stats', {"pendingReview": 0})
    html = admin_client.get('/admin').get_data(as_text=True)
    assert 'No donations waiting for review' in html


def test_admin_nav_only_on_admin_pages(admin_client, backend):
    backend.ok('GET', '/admin/stats', {})
    html = admin_client.get('/admin').get_data(as_text=True)
    assert 'class="admin-nav"' in html
    assert 'href="/admin/settings"' in html


# ==========================================
#  3. PENDING REVIEW
# ==========================================
def test_pending_shows_distance_checks(admin_client, backend):
    backend.ok('GET', '/admin/donations/pending', PENDING)

    html = admin_client.get('/admin/pending').get_data(as_text=True)

    assert 'User was approximately 1112m away from bin' in html
    assert '✓ Location verified' in html
    assert 'src="http://media.test/uploads/10.webm"' in html
    assert 'No video available' in html


def test_approve_donation(admin_client, backend):
    backend.ok('POST', '/admin/donations/10/approve')

    response = admin_client.post('/admin/donations/10/approve')

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/admin/pending')
    assert backend.called('POST', '/admin/donations/10/approve')[0]['json'] == {
        "adminNotes": "Approved by admin"}
    with admin_client.session_transaction() as sess:
        assert ('success', '✅ Donation approved successfully!') in sess['_flashes']


def test_approve_failure_message(admin_client, backend):
    backend.fail('POST', '/admin/donations/10/approve', 'Donation already reviewed')

    admin_client.post('/admin/donations/10/approve')

    with admin_client.session_transaction() as sess:
        assert ('error', 'Donation already reviewed') in sess['_flashes']


def test_reject_requires_reason(admin_client, backend):
    response = admin_client.post('/admin/donations/11/reject', data={"rejectionReason": "   "})

    assert response.status_code == 302
    assert 'review=11' in response.headers['Location']
    assert backend.calls == []
    with admin_client.session_transaction() as sess:
        assert ('error', 'Please provide a rejection reason') in sess['_flashes']


def test_reject_donation(admin_client, backend):
    backend.ok('POST', '/admin/donations/11/reject')

    admin_client.post('/admin/donations/11/reject', data={"rejectionReason": "Empty bin in video"})

    assert backend.called('POST', '/admin/donations/11/reject')[0]['json'] == {
        "rejectionReason": "Empty bin in video"}


# ==========================================
#  4. ALL DONATIONS
# ==========================================
def test_all_donations_passes_status_filter(admin_client, backend):
    backend.ok('GET', '/admin/donations', DONATIONS)

    admin_client.get('/admin/donations?status=approved')

    assert backend.called('GET', '/admin/donations')[0]['params'] == {
        "status": "approved", "limit": 100}


@pytest.mark.parametrize("query, expected", [
    ("AINA", "Aina Rahman"),            # name, any case
    ("example.org", "Ben Lee"),         # email
    ("teluk", "Chong Wei"),             # location
    ("bin002", "Ben Lee"),              # bin code
])
def test_all_donations_search(admin_client, backend, query, expected):
    backend.ok('GET', '/admin/donations', DONATIONS)

    html = admin_client.get(f'/admin/donations?q={query}').get_data(as_text=True)

    assert expected in html
    others = {"Aina Rahman", "Ben Lee", "Chong Wei"} - {expected}
    assert not any(name in html for name in others)


def test_all_donations_bad_status_is_all(admin_client, backend):
    backend.ok('GET', '/admin/donations', DONATIONS)
    admin_client.get('/admin/donations?status=whatever')
    assert backend.calls[0]['params']['status'] == 'all'


# ==========================================
#  5. USERS
# ==========================================
USERS = {"users": [
    {"id": 1, "name": "Aina Rahman", "email": "aina@test.com", "phone": "0123456789",
     "total_donations_count": 4, "created_at": "2024-01-05T00:00:00Z", "is_admin": False},
    {"id": 2, "name": "Ben Lee", "email": "ben@example.org", "phone": "0198765432",
     "total_donations_count": 1, "created_at": "2024-02-05T00:00:00Z", "is_admin": False},
]}


@pytest.mark.parametrize("query, expected, hidden", [
    ("ben", "Ben Lee", "Aina Rahman"),
    ("AINA@TEST", "Aina Rahman", "Ben Lee"),
    ("01987", "Ben Lee", "Aina Rahman"),
])
def test_users_search(admin_client, backend, query, expected, hidden):
    backend.ok('GET', '/admin/users', USERS)

    html = admin_client.get(f'/admin/users?q={query}').get_data(as_text=True)

    assert expected in html
    assert hidden not in html


def test_user_details(admin_client, backend):
    backend.ok('GET', '/admin/users/1/donations', {
        **USERS["users"][0],
        "donations": [{"id": 1, "status": "approved", "location_name": "Kuantan City Mall",
                       "scan_timestamp": "2024-05-01T10:00:00Z"}],
    })

    html = admin_client.get('/admin/users/1').get_data(as_text=True)

    assert 'Aina Rahman' in html
    assert 'Kuantan City Mall' in html
    assert 'Approved' in html


def test_user_details_failure_goes_back(admin_client, backend):
    backend.fail('GET', '/admin/users/5/donations', 'User not found', status=404)

    response = admin_client.get('/admin/users/5')

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/admin/users')


# ==========================================
#  6. SETTINGS
# ==========================================
def test_settings_change_password(admin_client, backend):
    backend.ok('POST', '/auth/change-password')

    response = admin_client.post('/admin/settings', data={
        "current_password": "admin", "new_password": "s3cret", "confirm_password": "s3cret",
    })

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/admin/settings')


def test_settings_rejects_short_password(admin_client, backend):
    response = admin_client.post('/admin/settings', data={
        "current_password": "admin", "new_password": "abc", "confirm_password": "abc",
    })

    assert response.status_code == 400
    assert 'at least 4 characters' in response.get_data(as_text=True)
    assert backend.calls == []


# ==========================================
#  7. DISTANCE THRESHOLD
# ==========================================
def at_distance(monkeypatch, km):
    monkeypatch.setattr('routes.admin.donation_distance_km', lambda donation: km)
    return Donation(id=12, verification_notes="Location verified")


def test_exactly_at_threshold_is_verified(app, monkeypatch):
    donation = at_distance(monkeypatch, 0.1)

    with app.app_context():
        card = review_card(donation)

    assert card['distance_warning'] is False
    assert card['auto_verified'] is True
    assert card['distance_m'] == 100


def test_just_past_threshold_warns(app, monkeypatch):
    donation = at_distance(monkeypatch, 0.1001)

    with app.app_context():
        card = review_card(donation)

    assert card['distance_warning'] is True
    assert card['auto_verified'] is False


def test_half_metre_rounds_up(app, monkeypatch):
    donation = at_distance(monkeypatch, 0.0625)
    with app.app_context():
        assert review_card(donation)['distance_m'] == 63


# ==========================================
#  8. SUMMARY COUNTS
# ==========================================
def test_all_donations_status_counts(admin_client, backend):
    backend.ok('GET', '/admin/donations', DONATIONS)

    html = admin_client.get('/admin/donations').get_data(as_text=True)

    assert '<strong>3</strong> Total' in html
    assert '<strong>1</strong> Approved' in html
    assert '<strong>1</strong> Pending' in html
    assert '<strong>1</strong> Rejected' in html
    assert 'Showing' not in html


def test_all_donations_search_shows_result_count(admin_client, backend):
    backend.ok('GET', '/admin/donations', DONATIONS)

    html = admin_client.get('/admin/donations?q=test.com').get_data(as_text=True)

    assert 'Showing 2 of 3 donations' in html
    # Counts stay on the full list
    assert '<strong>3</strong> Total' in html


def test_users_counts(admin_client, backend):
    backend.ok('GET', '/admin/users', {"users": USERS["users"] + [
        {"id": 3, "name": "Site Admin", "email": "admin@test.com",
         "total_donations_count": 0, "is_admin": True},
    ]})

    html = admin_client.get('/admin/users?q=ben').get_data(as_text=True)

    assert '<strong>3</strong> Total Users' in html
    assert '<strong>2</strong> Active' in html
    assert '<strong>1</strong> Admins' in html


# ==========================================
#  9. FORGED POSTS
# ==========================================
@pytest.fixture
def csrf_on(app):
    app.config['WTF_CSRF_ENABLED'] = True
    return app


def test_approve_without_csrf_token_is_refused(csrf_on, admin_client, backend):
    response = admin_client.post('/admin/donations/7/approve',
                                 headers={'Origin': 'https://evil.example'})

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/login')
    assert backend.calls == []
    with admin_client.session_transaction() as sess:
        assert ('error', 'Your form expired. Please try again.') in sess['_flashes']


def test_approve_with_token_from_page(csrf_on, admin_client, backend):
    backend.ok('GET', '/admin/donations/pending', PENDING)
    backend.ok('POST', '/admin/donations/10/approve')

    html = admin_client.get('/admin/pending').get_data(as_text=True)
    token = re.search(r'name="csrf_token" value="([^"]+)"', html).group(1)

    response = admin_client.post('/admin/donations/10/approve', data={"csrf_token": token})

    assert response.status_code == 302
    assert len(backend.called('POST', '/admin/donations/10/approve')) == 1
