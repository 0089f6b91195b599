from .health import health_bp
from .auth import auth_bp
from .venues import venues_bp
from .reservations import reservations_bp
from .notifications import notifications_bp
from .admin import admin_bp
