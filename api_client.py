import jwt
import requests
from flask import current_app, session

from models import TokenUser

TOKEN_KEY = 'token'
DEFAULT_API_URL = 'http://localhost:5000/api'


class ApiError(Exception):
    """ Network, parse or backend failure. The message is safe to show in a toast. """

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SessionExpired(Exception):
    """
    Backend answered 401/403. The stored token has already been removed.
    Not an ApiError, so it passes through route handlers to the app-level
    handler that sends the user back to /login.
    """

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


# ==========================================
#  1. TOKEN STORAGE (Signed session cookie)
# ==========================================
def set_token(token):
    session[TOKEN_KEY] = token


def get_token():
    return session.get(TOKEN_KEY)


def remove_token():
    session.pop(TOKEN_KEY, None)


def is_authenticated():
    return get_token() is not None


def get_user_from_token(token=None):
    """
    Reads userId / email / is_admin out of the JWT payload.
    The signature is NOT verified: this only decides what the UI shows,
    the backend still checks every request.
    """
    token = token or get_token()
    if not token:
        return None

    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        current_app.logger.error(f"Error decoding token: {e}")
        return None

    return TokenUser(
        user_id=payload.get('userId'),
        email=payload.get('email'),
        is_admin=bool(payload.get('is_admin') or False),
    )


def is_admin():
    user = get_user_from_token()
    return bool(user and user.is_admin)


# ==========================================
#  2. RESPONSE ENVELOPE
# ==========================================
class ApiResponse:
    """ The backend wraps everything as {success, data, message}. """

    def __init__(self, status_code, body):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        body = body if isinstance(body, dict) else {}
        self.success = bool(body.get('success'))
        self.data = body.get('data')
        self.message = body.get('message')

    def raise_for_failure(self, default_message):
        if not self.success:
            raise ApiError(self.message or default_message, self.status_code)
        return self.data


# ==========================================
#  3. AUTHENTICATED FETCH
# ==========================================
class ApiClient:
    """
    Thin wrapper around requests for the U4B backend.
    Created without an app (see extensions.py) and bound in create_app().
    """

    def __init__(self, app=None):
        self.base_url = DEFAULT_API_URL
        self.timeout = 15
        self.http = requests.Session()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.base_url = app.config.get('U4B_API_URL', DEFAULT_API_URL).rstrip('/')
        self.timeout = app.config.get('U4B_API_TIMEOUT', 15)
        app.extensions['u4b_api'] = self

    def url(self, path):
        return f"{self.base_url}/{path.lstrip('/')}"

    def fetch_with_auth(self, method, path, json=None, params=None, files=None, data=None):
        headers = {}
        token = get_token()
        if token:
            headers['Authorization'] = f'Bearer {token}'

        response = self._send(method, path, headers, json=json, params=params,
                              files=files, data=data)

        if response.status_code in (401, 403):
            current_app.logger.warning(
                f"{method} {path} returned {response.status_code}, clearing stored token")
            remove_token()
            raise SessionExpired('Session expired. Please log in again.', response.status_code)

        return self._parse(method, path, response)

    def get(self, path, params=None):
        return self.fetch_with_auth('GET', path, params=params)

    def post(self, path, json=None, files=None, data=None):
        return self.fetch_with_auth('POST', path, json=json, files=files, data=data)

    def post_public(self, path, json):
        """ Login / signup: no token yet, and a 401 here just means bad credentials. """
        response = self._send('POST', path, {}, json=json)
        return self._parse('POST', path, response)

    def _send(self, method, path, headers, **kwargs):
        try:
            return self.http.request(method, self.url(path), headers=headers,
                                     timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            current_app.logger.error(f"{method} {path} failed: {e}")
            raise ApiError('Network error. Please check your connection.')

    def _parse(self, method, path, response):
        try:
            body = response.json()
        except ValueError:
            current_app.logger.error(
                f"{method} {path} returned a non-JSON body (status {response.status_code})")
            raise ApiError('Invalid response from server', response.status_code)
        return ApiResponse(response.status_code, body)
