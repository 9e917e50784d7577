from flask import Blueprint, request, redirect, render_template, url_for, current_app
from api_client import ApiError, set_token, remove_token, get_user_from_token
from extensions import api
from toasts import show_success, show_error, show_info

auth_bp = Blueprint('auth', __name__)


def _landing_for(is_admin):
    return url_for('admin.admin_dashboard') if is_admin else url_for('user.dashboard')


@auth_bp.route('/', methods=['GET'])
def start():
    """ Splash screen. The template forwards to /login after a short delay. """
    return render_template('start.html',
                           redirect_seconds=current_app.config['START_REDIRECT_SECONDS'])


@auth_bp.route('/login', methods=['GET'])
def login():
    user = get_user_from_token()
    if user:
        return redirect(_landing_for(user.is_admin))

    is_login = request.args.get('mode') != 'register'
    return render_template('login.html', is_login=is_login, form={})


@auth_bp.route('/login', methods=['POST'])
def login_submit():
    """
    Handles both tabs of the form.
    mode=register signs up, anything else logs in.
    """
    form = request.form
    is_login = form.get('mode') != 'register'
    email = form.get('email', '').strip()
    name = form.get('name', '').strip()
    phone = form.get('phone', '').strip()
    password = form.get('password', '')

    # 1. Validation
    error = None
    if not email:
        error = 'Please enter your email'
    elif not is_login and not name:
        error = 'Please enter your name'
    elif not is_login and not phone:
        error = 'Please enter your phone number'

    if error:
        show_error(error)
        return render_template('login.html', is_login=is_login, form=form), 400

    # 2. Call the backend
    endpoint = '/auth/login' if is_login else '/auth/signup'
    payload = {
        'email': email,
        'password': password,
        'authId': email,
        'authProvider': 'email',
    }
    if not is_login:
        payload.update({'name': name, 'phone': phone})

    try:
        result = api.post_public(endpoint, payload)
        if not result.ok or not result.success:
            raise ApiError(result.message or 'Authentication failed', result.status_code)
        data = result.data or {}
        token = data.get('token')
        if not token:
            raise ApiError('Authentication failed')
    except ApiError as e:
        current_app.logger.error(f"Auth error: {e.message}")
        show_error(e.message or 'Something went wrong. Please try again.')
        return render_template('login.html', is_login=is_login, form=form), 400

    # 3. Save token & route by role
    set_token(token)
    show_success('Login successful!' if is_login else 'Account created successfully!')

    is_admin = bool((data.get('user') or {}).get('is_admin'))
    return redirect(_landing_for(is_admin))


@auth_bp.route('/logout', methods=['POST'])
def logout():
    remove_token()
    show_info('You have been logged out.')
    return redirect(url_for('auth.login'))
