"""HTTP Basic authentication for the admin endpoints.

Admin requests carry credentials on every call, so Flask-Login resolves
them with a request loader instead of a session login.
"""

from flask import current_app, jsonify
from flask_login import UserMixin

from bingoquiz import bcrypt, login_manager

ADMIN_REALM = 'bingoquiz-admin'


class AdminUser(UserMixin):
    def __init__(self, username):
        self.id = username
        self.username = username


def check_admin_credentials(username, password) -> bool:
    cfg = current_app.config
    if not username or password is None:
        return False
    if username != cfg.get('ADMIN_USER'):
        return False
    return bcrypt.check_password_hash(cfg['ADMIN_PASS_HASH'], password)


@login_manager.user_loader
def load_user(user_id):
    if user_id == current_app.config.get('ADMIN_USER'):
        return AdminUser(user_id)
    return None


@login_manager.request_loader
def load_admin_from_request(request):
    auth = request.authorization
    if auth is None or (auth.type or '').lower() != 'basic':
        return None
    if check_admin_credentials(auth.username, auth.password):
        return AdminUser(auth.username)
    return None


@login_manager.unauthorized_handler
def unauthorized():
    res = jsonify({'error': 'Unauthorized'})
    res.status_code = 401
    res.headers['WWW-Authenticate'] = f'Basic realm="{ADMIN_REALM}"'
    return res


def init_admin_auth(app) -> None:
    if not app.config.get('ADMIN_PASS_HASH'):
        app.config['ADMIN_PASS_HASH'] = bcrypt.generate_password_hash(app.config.get('ADMIN_PASS', '')).decode('utf-8')
