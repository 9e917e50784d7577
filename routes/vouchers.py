from flask import Blueprint, request, redirect, render_template, session, url_for, current_app, abort
from flask_login import login_required
from api_client import ApiError
from extensions import api
from models import Voucher, ClaimedVoucher, Eligibility
from toasts import show_success, show_error
from voucher_catalog import get_voucher_by_id

vouchers_bp = Blueprint('vouchers', __name__)

REDEEMED_KEY = 'redeemed_vouchers'


# ==========================================
#  HELPERS (Each call fails on its own)
# ==========================================
def fetch_available_vouchers():
    try:
        result = api.get('/vouchers/available')
        if result.success:
            return [Voucher.from_api(v) for v in (result.data or [])]
    except ApiError as e:
        current_app.logger.error(f"Error fetching vouchers: {e.message}")
    return []


def fetch_eligibility():
    try:
        result = api.get('/vouchers/check-eligibility')
        if result.success:
            return Eligibility.from_api(result.data)
    except ApiError as e:
        current_app.logger.error(f"Error checking eligibility: {e.message}")
    return None


def fetch_my_vouchers():
    try:
        result = api.get('/vouchers/my-vouchers')
        if result.success:
            return [ClaimedVoucher.from_api(v) for v in (result.data or [])]
    except ApiError as e:
        current_app.logger.error(f"Error fetching my vouchers: {e.message}")
    return []


def eligibility_message(eligibility):
    if eligibility is None:
        return None
    if eligibility.can_claim:
        return 'Choose any voucher below to claim your reward.'
    if not eligibility.has_approved_donation:
        return 'Make a donation and wait for admin approval to unlock vouchers.'
    if eligibility.has_claimed_this_month:
        return "You've already claimed a voucher this month. Come back next month!"
    return 'Not eligible yet'


# ==========================================
#  1. VOUCHER LIST
# ==========================================
@vouchers_bp.route('/voucher', methods=['GET'])
@login_required
def voucher_page():
    eligibility = fetch_eligibility()
    shown = request.args.get('show', type=int)

    return render_template(
        'vouchers.html',
        vouchers=fetch_available_vouchers(),
        eligibility=eligibility,
        eligibility_message=eligibility_message(eligibility),
        my_vouchers=fetch_my_vouchers(),
        shown_code_id=shown,
    )


@vouchers_bp.route('/voucher/claim', methods=['POST'])
@login_required
def claim_voucher():
    voucher_id = request.form.get('voucherId', type=int)
    if voucher_id is None:
        show_error('Failed to claim voucher')
        return redirect(url_for('vouchers.voucher_page'))

    # Same check the button state uses; the backend enforces it again
    eligibility = fetch_eligibility()
    if not eligibility or not eligibility.can_claim:
        show_error('You are not eligible to claim a voucher yet')
        return redirect(url_for('vouchers.voucher_page'))

    try:
        result = api.post('/vouchers/claim', json={'voucherId': voucher_id})
    except ApiError as e:
        current_app.logger.error(f"Error claiming voucher: {e.message}")
        show_error('Failed to claim voucher')
        return redirect(url_for('vouchers.voucher_page'))

    if result.success:
        show_success('🎉 Voucher claimed successfully!')
    else:
        show_error(result.message or 'Failed to claim voucher')
    return redirect(url_for('vouchers.voucher_page'))


# ==========================================
#  2. PARTNER VOUCHER DETAIL (Static catalog)
# ==========================================
@vouchers_bp.route('/voucher/<int:voucher_id>', methods=['GET'])
@login_required
def voucher_detail(voucher_id):
    voucher = get_voucher_by_id(voucher_id)
    if voucher is None:
        return render_template('voucher_not_found.html'), 404

    redeemed = voucher_id in session.get(REDEEMED_KEY, [])
    return render_template('voucher_detail.html', voucher=voucher,
                           is_redeemed=redeemed, show_code=redeemed)


@vouchers_bp.route('/voucher/<int:voucher_id>/redeem', methods=['POST'])
@login_required
def redeem_voucher(voucher_id):
    if get_voucher_by_id(voucher_id) is None:
        abort(404)

    redeemed = session.get(REDEEMED_KEY, [])
    if voucher_id not in redeemed:
        session[REDEEMED_KEY] = redeemed + [voucher_id]
    show_success('Redeemed Successfully!')
    return redirect(url_for('vouchers.voucher_detail', voucher_id=voucher_id))
