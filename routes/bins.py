from flask import Blueprint, request, render_template, current_app
from flask_login import login_required
from api_client import ApiError
from extensions import api
from models import Bin
from toasts import show_error
from utils import search_bins, directions_url

bins_bp = Blueprint('bins', __name__)


def fetch_bins(latitude=None, longitude=None):
    """ Nearest-first when we know where the user is, otherwise the full list. """
    if latitude and longitude:
        result = api.get('/bins/nearby', params={'latitude': latitude, 'longitude': longitude})
    else:
        result = api.get('/bins', params={'limit': 100})

    data = result.raise_for_failure('Failed to load bins')
    # /bins wraps the list, /bins/nearby may return it bare
    raw_bins = data.get('bins', []) if isinstance(data, dict) else (data or [])
    return [Bin.from_api(b) for b in raw_bins]


@bins_bp.route('/bins', methods=['GET'])
@login_required
def bins_page():
    query = request.args.get('q', '').strip()

    bins = []
    try:
        bins = fetch_bins(request.args.get('lat'), request.args.get('lng'))
    except ApiError as e:
        current_app.logger.error(f"Error fetching bins: {e.message}")
        show_error('Failed to load bins')

    matches = search_bins(bins, query)
    active = [b for b in matches if b.status == 'active']

    return render_template(
        'bins.html',
        bins=matches,
        active_count=len(active),
        query=query,
        directions={b.id: directions_url(b.latitude, b.longitude) for b in matches},
    )
