from flask import request

from api_client import get_user_from_token

# Pages where the bottom navigation is hidden
NO_NAV_PATHS = ('/', '/login')

USER_NAV_ITEMS = [
    {'icon': 'home', 'label': 'Home', 'path': '/dashboard'},
    {'icon': 'camera', 'label': 'Donate', 'path': '/donation'},
    {'icon': 'gift', 'label': 'Vouchers', 'path': '/voucher'},
    {'icon': 'user', 'label': 'Profile', 'path': '/profile'},
]

ADMIN_ONLY_NAV_ITEMS = [
    {'icon': 'shield', 'label': 'Admin', 'path': '/admin'},
]

ADMIN_NAV_ITEMS = [
    {'icon': 'home', 'label': 'Dashboard', 'path': '/admin'},
    {'icon': 'clock', 'label': 'Pending', 'path': '/admin/pending'},
    {'icon': 'package', 'label': 'Donations', 'path': '/admin/donations'},
    {'icon': 'users', 'label': 'Users', 'path': '/admin/users'},
    {'icon': 'settings', 'label': 'Settings', 'path': '/admin/settings'},
]


def _mark_active(items, path):
    return [dict(item, active=(item['path'] == path)) for item in items]


def bottom_nav_items(path, user):
    """ Regular users get the four tabs, admins only get the way back to /admin. """
    if path in NO_NAV_PATHS:
        return []
    items = ADMIN_ONLY_NAV_ITEMS if (user and user.is_admin) else USER_NAV_ITEMS
    return _mark_active(items, path)


def admin_nav_items(path):
    """ Only rendered on /admin pages. The logout button lives in the template. """
    if not path.startswith('/admin'):
        return []
    return _mark_active(ADMIN_NAV_ITEMS, path)


def init_navigation(app):
    @app.context_processor
    def inject_navigation():
        path = request.path
        user = get_user_from_token()
        return {
            'nav_items': bottom_nav_items(path, user),
            'admin_nav_items': admin_nav_items(path),
        }
