import math
import re
from datetime import datetime
from functools import wraps

from flask import redirect, url_for
from flask_login import current_user

from models import parse_timestamp
from toasts import show_error

EARTH_RADIUS_KM = 6371
DISTANCE_WARNING_KM = 0.1
MIN_PASSWORD_LENGTH = 4

DONATION_STATUSES = ('pending_admin', 'approved', 'rejected')

STATUS_LABELS = {
    'approved': 'Approved',
    'pending_admin': 'Pending Review',
    'pending': 'Pending',
    'rejected': 'Rejected',
}

STATUS_COLORS = {
    'approved': 'green',
    'pending_admin': 'orange',
    'pending': 'orange',
    'rejected': 'red',
}


# ==========================================
#  1. ACCESS GATING
# ==========================================
def admin_required(view):
    """ Goes under @login_required. Non-admins are sent back to their dashboard. """
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated or not current_user.is_admin:
            show_error('Admin access only!')
            return redirect(url_for('user.dashboard'))
        return view(*args, **kwargs)
    return wrapper


# ==========================================
#  2. STATUS DISPLAY
# ==========================================
def status_label(status):
    return STATUS_LABELS.get(status, status)


def status_color(status):
    return STATUS_COLORS.get(status, 'gray')


# ==========================================
#  3. SEARCH & FILTERS (All case-insensitive)
# ==========================================
def _contains(value, query):
    return query in (value or '').lower()


def filter_by_status(donations, status):
    if not status or status == 'all':
        return list(donations)
    return [d for d in donations if d.status == status]


def search_donations(donations, query):
    """ Admin search: user name, user email, location or bin code. """
    if not query:
        return list(donations)
    q = query.lower()
    return [
        d for d in donations
        if _contains(d.user_name, q) or _contains(d.user_email, q)
        or _contains(d.location_name, q) or _contains(d.bin_code, q)
    ]


def search_users(users, query):
    """ Name and email ignore case; phone is a plain substring match. """
    if not query:
        return list(users)
    q = query.lower()
    return [
        u for u in users
        if _contains(u.name, q) or _contains(u.email, q)
        or (u.phone and query in u.phone)
    ]


def search_bins(bins, query):
    if not query:
        return list(bins)
    q = query.lower()
    return [
        b for b in bins
        if _contains(b.location_name, q) or _contains(b.bin_code, q) or _contains(b.address, q)
    ]


def count_by_status(donations):
    counts = {status: 0 for status in DONATION_STATUSES}
    for d in donations:
        if d.status in counts:
            counts[d.status] += 1
    counts['all'] = len(donations)
    return counts


def count_users(users):
    return {
        'total': len(users),
        'active': sum(1 for u in users if (u.total_donations_count or 0) > 0),
        'admins': sum(1 for u in users if u.is_admin),
    }


# ==========================================
#  4. DATES
# ==========================================
def in_current_month(value, now=None):
    ts = parse_timestamp(value)
    if ts is None:
        return False
    now = now or datetime.now()
    return ts.year == now.year and ts.month == now.month


def format_timestamp(value, fmt='%d %b %Y, %H:%M'):
    ts = parse_timestamp(value)
    return ts.strftime(fmt) if ts else ''


# ==========================================
#  5. DASHBOARD STATS
# ==========================================
def dashboard_stats(profile, donations, claimed_vouchers, now=None):
    """
    Everything the home screen shows, derived from the three API calls.
    A voucher can be claimed once there is an approved donation and
    nothing has been claimed yet this month.
    """
    approved = [d for d in donations if d.status == 'approved']
    monthly = [d for d in donations if in_current_month(d.created_at, now)]
    claimed_this_month = [v for v in claimed_vouchers if in_current_month(v.claimed_at, now)]

    return {
        'name': (profile.name if profile else None) or 'User',
        'total_donations': len(donations),
        'monthly_donations': len(monthly),
        'approved_donations': len(approved),
        'vouchers_claimed': len(claimed_vouchers),
        'can_claim_voucher': len(approved) > 0 and len(claimed_this_month) == 0,
    }


# ==========================================
#  6. DISTANCE CHECKS
# ==========================================
def haversine_km(lat1, lon1, lat2, lon2):
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def donation_distance_km(donation):
    """ Distance between where the video was shot and the bin, or None if a coordinate is missing. """
    coords = (donation.media_latitude, donation.media_longitude,
              donation.bin_latitude, donation.bin_longitude)
    if any(c is None for c in coords):
        return None
    return haversine_km(*(float(c) for c in coords))


def is_distance_warning(notes):
    if not notes:
        return False
    lowered = notes.lower()
    return 'warning' in lowered and 'away from bin' in lowered


def extract_distance(notes):
    match = re.search(r'(\d+)m away from bin', notes or '')
    return match.group(1) if match else None


def directions_url(latitude, longitude):
    return f"https://www.google.com/maps/dir/?api=1&destination={latitude},{longitude}"


# ==========================================
#  7. FORM VALIDATION
# ==========================================
def validate_password_change(current_password, new_password, confirm_password):
    """ Returns the first problem as a message, or None when the form is fine. """
    if not current_password or not new_password or not confirm_password:
        return 'All fields are required'
    if len(new_password) < MIN_PASSWORD_LENGTH:
        return f'New password must be at least {MIN_PASSWORD_LENGTH} characters'
    if new_password != confirm_password:
        return 'New passwords do not match'
    if current_password == new_password:
        return 'New password must be different from current password'
    return None


def clamp_fabric_count(value, minimum=1, maximum=10):
    try:
        count = int(value)
    except (TypeError, ValueError):
        return minimum
    return max(minimum, min(maximum, count))


def mask_code(code):
    return '•' * len(code or '')
