from flask import Blueprint, request, redirect, render_template, url_for, current_app
from flask_login import login_required
from api_client import ApiError
from extensions import api
from models import UserProfile, Donation, ClaimedVoucher
from toasts import show_success, show_error
from utils import (dashboard_stats, filter_by_status, count_by_status,
                   is_distance_warning, extract_distance, validate_password_change)

user_bp = Blueprint('user', __name__)

HISTORY_FILTERS = ('all', 'pending_admin', 'approved', 'rejected')


def fetch_my_donations():
    result = api.get('/donations/my-donations', params={'limit': 100})
    data = result.raise_for_failure('Failed to load history') or {}
    return [Donation.from_api(d) for d in data.get('donations', [])]


def change_password(form):
    """
    Shared by /profile/change-password and /admin/settings.
    Returns (ok, message).
    """
    current_password = form.get('current_password', '')
    new_password = form.get('new_password', '')
    confirm_password = form.get('confirm_password', '')

    error = validate_password_change(current_password, new_password, confirm_password)
    if error:
        return False, error

    try:
        result = api.post('/auth/change-password', json={
            'currentPassword': current_password,
            'newPassword': new_password,
        })
    except ApiError as e:
        current_app.logger.error(f"Change password error: {e.message}")
        return False, 'An error occurred. Please try again.'

    if not result.success:
        return False, result.message or 'Failed to change password'
    return True, 'Password changed successfully!'


# ==========================================
#  1. DASHBOARD
# ==========================================
@user_bp.route('/dashboard', methods=['GET'])
@login_required
def dashboard():
    """ Home screen: donation counts and whether a voucher can be claimed. """
    stats = dashboard_stats(None, [], [])

    try:
        profile_result = api.get('/auth/profile')
        if profile_result.success:
            profile = UserProfile.from_api(profile_result.data)

            donations_result = api.get('/donations/my-donations', params={'limit': 100})
            donations = []
            if donations_result.success:
                donations = [Donation.from_api(d)
                             for d in (donations_result.data or {}).get('donations', [])]

            vouchers_result = api.get('/vouchers/my-vouchers')
            claimed = []
            if vouchers_result.success:
                claimed = [ClaimedVoucher.from_api(v) for v in (vouchers_result.data or [])]

            stats = dashboard_stats(profile, donations, claimed)
    except ApiError as e:
        current_app.logger.error(f"Error fetching user data: {e.message}")

    return render_template('dashboard.html', stats=stats)


# ==========================================
#  2. DONATION HISTORY
# ==========================================
@user_bp.route('/history', methods=['GET'])
@login_required
def history():
    current_filter = request.args.get('filter', 'all')
    if current_filter not in HISTORY_FILTERS:
        current_filter = 'all'

    donations = []
    try:
        donations = fetch_my_donations()
    except ApiError as e:
        current_app.logger.error(f"Error fetching history: {e.message}")
        show_error('Failed to load donation history')

    items = []
    for d in filter_by_status(donations, current_filter):
        warning = is_distance_warning(d.verification_notes)
        items.append({
            'donation': d,
            'distance_warning': warning,
            'distance_m': extract_distance(d.verification_notes) if warning else None,
        })

    return render_template('history.html', items=items,
                           counts=count_by_status(donations),
                           current_filter=current_filter,
                           filters=HISTORY_FILTERS)


# ==========================================
#  3. PROFILE
# ==========================================
@user_bp.route('/profile', methods=['GET'])
@login_required
def profile():
    profile_data = None
    error = None
    try:
        result = api.get('/auth/profile')
        if result.success:
            profile_data = UserProfile.from_api(result.data)
        else:
            error = result.message or 'Failed to load profile'
    except ApiError as e:
        current_app.logger.error(f"Error fetching profile: {e.message}")
        error = 'Failed to load profile'

    return render_template('profile.html', profile=profile_data, error=error)


@user_bp.route('/profile/change-password', methods=['GET', 'POST'])
@login_required
def profile_change_password():
    if request.method == 'GET':
        return render_template('change_password.html',
                               action=url_for('user.profile_change_password'),
                               back_url=url_for('user.profile'))

    ok, message = change_password(request.form)
    if ok:
        show_success(message)
        return redirect(url_for('user.profile'))

    return render_template('change_password.html',
                           action=url_for('user.profile_change_password'),
                           back_url=url_for('user.profile'),
                           error=message), 400
