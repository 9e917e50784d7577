from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect
from api_client import ApiClient

# Initialize them WITHOUT the 'app' variable
login_manager = LoginManager()
csrf = CSRFProtect()
api = ApiClient()
