from flask import Flask, redirect, request, url_for, jsonify
from flask_wtf.csrf import CSRFError
import os
import logging
from dotenv import load_dotenv

# 1. IMPORT EXTENSIONS (From extensions.py)
from extensions import login_manager, csrf, api
from api_client import SessionExpired, get_user_from_token
from navigation import init_navigation
from toasts import init_toasts, show_error
import utils

load_dotenv()


def create_app():
    """
    The Application Factory.
    Creates and configures the app, but does not run it.
    """
    app = Flask(__name__)

    # --- CONFIGURATION ---
    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY', 'default_secret_key')
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
    app.config['U4B_API_URL'] = os.getenv('U4B_API_URL', 'http://localhost:5000/api')
    app.config['U4B_API_TIMEOUT'] = float(os.getenv('U4B_API_TIMEOUT', '15'))
    # Videos are served by the backend host, not under /api
    app.config['MEDIA_BASE_URL'] = os.getenv('MEDIA_BASE_URL', 'http://localhost:5000')

    # --- DONATION CAPTURE ---
    app.config['MAX_RECORDING_SECONDS'] = int(os.getenv('MAX_RECORDING_SECONDS', '30'))
    app.config['MAX_VIDEO_BYTES'] = int(os.getenv('MAX_VIDEO_BYTES', str(50 * 1024 * 1024)))
    app.config['MAX_CONTENT_LENGTH'] = app.config['MAX_VIDEO_BYTES'] + 1024 * 1024
    app.config['FABRIC_COUNT_MIN'] = 1
    app.config['FABRIC_COUNT_MAX'] = 10

    # --- UI ---
    app.config['TOAST_DURATION_MS'] = int(os.getenv('TOAST_DURATION_MS', '3000'))
    app.config['START_REDIRECT_SECONDS'] = float(os.getenv('START_REDIRECT_SECONDS', '2.5'))

    # --- LOGGING ---
    app.logger.setLevel(getattr(logging, os.getenv('LOG_LEVEL', 'INFO').upper(), logging.INFO))

    # --- INITIALIZE EXTENSIONS ---
    api.init_app(app)
    csrf.init_app(app)
    login_manager.init_app(app)
    login_manager.login_view = 'auth.login'
    login_manager.login_message = 'Please log in to continue.'
    login_manager.login_message_category = 'info'
    init_toasts(app)
    init_navigation(app)

    # --- TEMPLATE HELPERS ---
    app.jinja_env.globals.update(
        status_label=utils.status_label,
        status_color=utils.status_color,
        format_timestamp=utils.format_timestamp,
        mask_code=utils.mask_code,
    )

    register_error_handlers(app)

    # --- REGISTER BLUEPRINTS ---
    # Import inside the function to avoid circular imports
    from routes.auth import auth_bp
    from routes.user import user_bp
    from routes.donations import donations_bp
    from routes.bins import bins_bp
    from routes.vouchers import vouchers_bp
    from routes.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(donations_bp)
    app.register_blueprint(bins_bp)
    app.register_blueprint(vouchers_bp)
    app.register_blueprint(admin_bp)

    return app


@login_manager.request_loader
def load_user_from_token(request):
    """ The stored bearer token IS the login; there is no server-side user table. """
    return get_user_from_token()


def wants_json():
    return request.headers.get('X-Requested-With') == 'XMLHttpRequest'


def register_error_handlers(app):

    @app.errorhandler(SessionExpired)
    def handle_session_expired(error):
        # Token was already dropped by the api client
        if wants_json():
            return jsonify({'success': False, 'message': error.message,
                            'redirect': url_for('auth.login')}), 401
        show_error(error.message)
        return redirect(url_for('auth.login'))

    @app.errorhandler(CSRFError)
    def handle_csrf_error(error):
        app.logger.warning(f"CSRF check failed on {request.path}: {error.description}")
        message = 'Your form expired. Please try again.'
        if wants_json():
            return jsonify({'success': False, 'message': message}), 400
        show_error(message)
        return redirect(url_for('auth.login'))

    @app.errorhandler(413)
    def handle_too_large(error):
        app.logger.warning(f"Rejected upload over {app.config['MAX_CONTENT_LENGTH']} bytes")
        if wants_json():
            return jsonify({'success': False, 'message': 'Video is too large'}), 413
        show_error('Video is too large')
        return redirect(url_for('donations.donation_page'))


# --- ENTRY POINT ---
# This only runs if you type 'python app.py'
if __name__ == "__main__":
    app = create_app()
    app.logger.info(f"🚀 U4B web running against {app.config['U4B_API_URL']}")
    app.run(debug=True, port=int(os.getenv('PORT', '3000')))
