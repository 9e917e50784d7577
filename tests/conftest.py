import sys
import os
import jwt
import pytest
from unittest.mock import MagicMock, patch

# 1. Add the parent directory to Python's path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# 2. NOW import from app
from app import create_app
from extensions import api


@pytest.fixture
def app():
    """Create and configure a new app instance for each test."""
    app = create_app()

    app.config.update({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "MEDIA_BASE_URL": "http://media.test",
        "WTF_CSRF_ENABLED": False,
    })

    yield app


@pytest.fixture
def client(app):
    return app.test_client()


# ==========================================
#  TOKENS & LOGIN
# ==========================================
def make_token(user_id=1, email="user@test.com", is_admin=False):
    """ Signed with a throwaway key: the app never verifies it. """
    return jwt.encode({"userId": user_id, "email": email, "is_admin": is_admin},
                      "backend-only-secret", algorithm="HS256")


def login_with_token(client, token):
    with client.session_transaction() as sess:
        sess['token'] = token


@pytest.fixture
def user_client(client):
    login_with_token(client, make_token())
    return client


@pytest.fixture
def admin_client(client):
    login_with_token(client, make_token(user_id=99, email="admin@test.com", is_admin=True))
    return client


# ==========================================
#  FAKE BACKEND (Patches the requests session)
# ==========================================
def api_response(status=200, body=None, json_error=False):
    response = MagicMock()
    response.status_code = status
    if json_error:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = body if body is not None else {}
    return response


class FakeBackend:
    """
    Maps (METHOD, path) to canned responses and records every call.
    Unregistered routes answer 404 with success=False.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []

    def on(self, method, path, status=200, body=None, **kwargs):
        self.routes[(method, path)] = api_response(status, body, **kwargs)
        return self

    def ok(self, method, path, data=None, message=None):
        return self.on(method, path, body={"success": True, "data": data, "message": message})

    def fail(self, method, path, message, status=400):
        return self.on(method, path, status=status, body={"success": False, "message": message})

    def __call__(self, method, url, **kwargs):
        path = url[len(api.base_url):]
        self.calls.append({"method": method, "path": path, **kwargs})
        return self.routes.get((method, path),
                               api_response(404, {"success": False, "message": "Not found"}))

    def called(self, method, path):
        return [c for c in self.calls if c["method"] == method and c["path"] == path]


@pytest.fixture
def backend():
    fake = FakeBackend()
    with patch.object(api.http, 'request', side_effect=fake):
        yield fake
