from flask import current_app, flash, get_flashed_messages

TOAST_TYPES = ('success', 'error', 'info')
DEFAULT_DURATION_MS = 3000


def show_toast(message, category='info'):
    if category not in TOAST_TYPES:
        category = 'info'
    flash(message, category)


def show_success(message):
    show_toast(message, 'success')


def show_error(message):
    show_toast(message, 'error')


def show_info(message):
    show_toast(message, 'info')


def toasts_for_render():
    """
    Drains the flashed messages into the shape the toast container needs.
    Each toast sits 80px below the previous one.
    """
    toasts = []
    for index, (category, message) in enumerate(get_flashed_messages(with_categories=True)):
        toasts.append({
            'id': index + 1,
            'message': message,
            'type': category if category in TOAST_TYPES else 'info',
            'top': 16 + index * 80,
        })
    return toasts


def init_toasts(app):
    @app.context_processor
    def inject_toasts():
        return {
            'toasts': toasts_for_render,
            'toast_duration_ms': current_app.config.get('TOAST_DURATION_MS', DEFAULT_DURATION_MS),
        }
