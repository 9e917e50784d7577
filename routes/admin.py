from flask import Blueprint, request, redirect, render_template, url_for, current_app
from flask_login import login_required
from api_client import ApiError
from extensions import api
from models import AdminStats, Donation, UserProfile, UserDetails
from toasts import show_success, show_error
from utils import (admin_required, search_donations, search_users, count_by_status,
                   count_users, donation_distance_km, DISTANCE_WARNING_KM)
from routes.user import change_password

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')

DONATION_FILTERS = ('all', 'approved', 'rejected', 'pending_admin')


def pending_summary(count):
    if count == 0:
        return 'No donations waiting for review'
    return f"{count} donation{'s' if count > 1 else ''} waiting for review"


def media_url(path):
    if not path:
        return None
    return f"{current_app.config['MEDIA_BASE_URL'].rstrip('/')}{path}"


def review_card(donation):
    """ What the pending list needs per donation: distance check and the video link. """
    distance = donation_distance_km(donation)
    return {
        'donation': donation,
        'distance_km': distance,
        'distance_warning': distance is not None and distance > DISTANCE_WARNING_KM,
        # Half a metre rounds up
        'distance_m': int(distance * 1000 + 0.5) if distance is not None else None,
        'auto_verified': bool(donation.verification_notes) and distance is not None
                         and distance <= DISTANCE_WARNING_KM,
        'video_url': media_url(donation.media_url),
    }


# ==========================================
#  1. DASHBOARD (Live stats)
# ==========================================
@admin_bp.route('', methods=['GET'])
@login_required
@admin_required
def admin_dashboard():
    stats = AdminStats()
    try:
        result = api.get('/admin/stats')
        if result.success:
            stats = AdminStats.from_api(result.data)
    except ApiError as e:
        current_app.logger.error(f"Error fetching stats: {e.message}")
        show_error('Failed to load stats')

    return render_template('admin/dashboard.html', stats=stats,
                           pending_text=pending_summary(stats.pending_review))


# ==========================================
#  2. PENDING REVIEW QUEUE
# ==========================================
@admin_bp.route('/pending', methods=['GET'])
@login_required
@admin_required
def pending_donations():
    donations = []
    try:
        result = api.get('/admin/donations/pending')
        if result.success:
            donations = [Donation.from_api(d) for d in (result.data or {}).get('donations', [])]
    except ApiError as e:
        current_app.logger.error(f"Error fetching pending donations: {e.message}")
        show_error('Failed to load pending donations')

    return render_template('admin/pending.html',
                           cards=[review_card(d) for d in donations],
                           selected_id=request.args.get('review', type=int))


@admin_bp.route('/donations/<int:donation_id>/approve', methods=['POST'])
@login_required
@admin_required
def approve_donation(donation_id):
    try:
        result = api.post(f'/admin/donations/{donation_id}/approve',
                          json={'adminNotes': 'Approved by admin'})
        if result.success:
            current_app.logger.info(f"Donation {donation_id} approved")
            show_success('✅ Donation approved successfully!')
        else:
            show_error(result.message or 'Failed to approve donation')
    except ApiError as e:
        current_app.logger.error(f"Error approving donation {donation_id}: {e.message}")
        show_error('Error approving donation')

    return redirect(url_for('admin.pending_donations'))


@admin_bp.route('/donations/<int:donation_id>/reject', methods=['POST'])
@login_required
@admin_required
def reject_donation(donation_id):
    reason = request.form.get('rejectionReason', '').strip()
    if not reason:
        show_error('Please provide a rejection reason')
        return redirect(url_for('admin.pending_donations', review=donation_id))

    try:
        result = api.post(f'/admin/donations/{donation_id}/reject',
                          json={'rejectionReason': reason})
        if result.success:
            current_app.logger.info(f"Donation {donation_id} rejected: {reason}")
            show_success('❌ Donation rejected')
        else:
            show_error(result.message or 'Failed to reject donation')
    except ApiError as e:
        current_app.logger.error(f"Error rejecting donation {donation_id}: {e.message}")
        show_error('Error rejecting donation')

    return redirect(url_for('admin.pending_donations'))


# ==========================================
#  3. ALL DONATIONS (Filter + search)
# ==========================================
@admin_bp.route('/donations', methods=['GET'])
@login_required
@admin_required
def all_donations():
    status = request.args.get('status', 'all')
    if status not in DONATION_FILTERS:
        status = 'all'
    query = request.args.get('q', '').strip()

    donations = []
    try:
        result = api.get('/admin/donations', params={'status': status, 'limit': 100})
        if result.success:
            donations = [Donation.from_api(d) for d in (result.data or {}).get('donations', [])]
    except ApiError as e:
        current_app.logger.error(f"Error fetching donations: {e.message}")
        show_error('Failed to load donations')

    return render_template('admin/donations.html',
                           donations=search_donations(donations, query),
                           counts=count_by_status(donations),
                           status=status, query=query, filters=DONATION_FILTERS,
                           media_url=media_url)


# ==========================================
#  4. USERS
# ==========================================
@admin_bp.route('/users', methods=['GET'])
@login_required
@admin_required
def manage_users():
    query = request.args.get('q', '').strip()

    users = []
    try:
        result = api.get('/admin/users')
        if result.success:
            users = [UserProfile.from_api(u) for u in (result.data or {}).get('users', [])]
    except ApiError as e:
        current_app.logger.error(f"Error fetching users: {e.message}")
        show_error('Failed to load users')

    return render_template('admin/users.html', users=search_users(users, query),
                           counts=count_users(users), query=query)


@admin_bp.route('/users/<int:user_id>', methods=['GET'])
@login_required
@admin_required
def user_details(user_id):
    try:
        result = api.get(f'/admin/users/{user_id}/donations')
    except ApiError as e:
        current_app.logger.error(f"Error fetching user details for {user_id}: {e.message}")
        show_error('Failed to load user details')
        return redirect(url_for('admin.manage_users'))

    if not result.success:
        show_error(result.message or 'Failed to load user details')
        return redirect(url_for('admin.manage_users'))

    return render_template('admin/user_detail.html', user=UserDetails.from_api(result.data))


# ==========================================
#  5. SETTINGS
# ==========================================
@admin_bp.route('/settings', methods=['GET', 'POST'])
@login_required
@admin_required
def settings():
    if request.method == 'GET':
        return render_template('change_password.html',
                               action=url_for('admin.settings'),
                               back_url=url_for('admin.admin_dashboard'))

    ok, message = change_password(request.form)
    if ok:
        show_success(message)
        return redirect(url_for('admin.settings'))

    return render_template('change_password.html',
                           action=url_for('admin.settings'),
                           back_url=url_for('admin.admin_dashboard'),
                           error=message), 400
