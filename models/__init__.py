from .db import db
from .user import User, Role
from .audit_log import AuditLog
from .session import Session
from .password_reset import PasswordResetToken
from .venue import Venue, VenuePhoto, VenueStatus
from .reservation import Reservation, ReservationStatus
from .notification import Notification, NotificationKind
