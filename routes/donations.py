from flask import Blueprint, request, jsonify, redirect, render_template, url_for, current_app
from flask_login import login_required
from api_client import ApiError
from extensions import api
from models import Bin
from toasts import show_success, show_error
from utils import clamp_fabric_count

donations_bp = Blueprint('donations', __name__)

VIDEO_FILENAME = 'donation-video.webm'
VIDEO_MIMETYPE = 'video/webm'


def find_bin_by_code(bin_code):
    """ Bin QR codes carry the bin_code; the API only lists bins, so search the list. """
    result = api.get('/bins', params={'limit': 100})
    data = result.raise_for_failure('Failed to load bin information') or {}
    for raw in data.get('bins', []):
        if raw.get('bin_code') == bin_code:
            return Bin.from_api(raw)
    return None


def _is_xhr():
    return request.headers.get('X-Requested-With') == 'XMLHttpRequest'


def _fail(message, status=400):
    """ XHR uploads get JSON, plain form posts get a toast and a redirect back. """
    if _is_xhr():
        return jsonify({'success': False, 'message': message}), status
    show_error(message)
    return redirect(url_for('donations.donation_page', bin=request.form.get('binCode') or None))


def _video_size(video):
    video.stream.seek(0, 2)
    size = video.stream.tell()
    video.stream.seek(0)
    return size


# ==========================================
#  1. CAPTURE PAGE
# ==========================================
@donations_bp.route('/donation', methods=['GET'])
@login_required
def donation_page():
    selected_bin = None
    bin_code = request.args.get('bin')

    if bin_code:
        try:
            selected_bin = find_bin_by_code(bin_code)
            if selected_bin:
                show_success(f'Location detected: {selected_bin.location_name}')
            else:
                show_error(f'Bin {bin_code} not found')
        except ApiError as e:
            current_app.logger.error(f"Error fetching bin: {e.message}")
            show_error('Failed to load bin information')

    return render_template(
        'donation.html',
        selected_bin=selected_bin,
        fabric_count=current_app.config['FABRIC_COUNT_MIN'],
        fabric_min=current_app.config['FABRIC_COUNT_MIN'],
        fabric_max=current_app.config['FABRIC_COUNT_MAX'],
        max_seconds=current_app.config['MAX_RECORDING_SECONDS'],
    )


# ==========================================
#  2. SUBMIT (Forward multipart to the backend)
# ==========================================
@donations_bp.route('/donation/submit', methods=['POST'])
@login_required
def submit_donation():
    form = request.form
    video = request.files.get('video')

    # 1. Validation (same order the page checks them)
    if not form.get('binId'):
        return _fail('Please scan the QR code on the bin first')
    if video is None or not video.filename:
        return _fail('Please record a video first')
    if not form.get('latitude') or not form.get('longitude'):
        return _fail('Location access required')

    size = _video_size(video)
    if size == 0:
        return _fail('Please record a video first')
    if size > current_app.config['MAX_VIDEO_BYTES']:
        return _fail('Video is too large', 413)

    fabric_count = clamp_fabric_count(form.get('fabricCount'),
                                      current_app.config['FABRIC_COUNT_MIN'],
                                      current_app.config['FABRIC_COUNT_MAX'])

    # 2. Build the multipart body
    files = {'video': (VIDEO_FILENAME, video.stream, video.mimetype or VIDEO_MIMETYPE)}
    data = {
        'binId': form['binId'],
        'fabricCount': str(fabric_count),
        'latitude': form['latitude'],
        'longitude': form['longitude'],
        'accuracy': form.get('accuracy', ''),
    }

    # 3. Upload
    try:
        result = api.post('/donations/submit', files=files, data=data)
    except ApiError as e:
        current_app.logger.error(f"Submit error: {e.message}")
        return _fail('Failed to submit donation. Please try again.', 502)

    if not result.success:
        current_app.logger.warning(f"Donation rejected by backend: {result.message}")
        return _fail(result.message or 'Failed to submit donation')

    current_app.logger.info(f"Donation submitted for bin {data['binId']} ({fabric_count} items)")
    message = '🎉 Donation submitted successfully!'
    show_success(message)
    if _is_xhr():
        return jsonify({'success': True, 'message': message,
                        'redirect': url_for('user.dashboard')}), 201
    return redirect(url_for('user.dashboard'))
