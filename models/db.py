from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import IntegrityError

from utils.errors import ConflictError

db = SQLAlchemy()


def commit():
    """
    Commit the current unit of work; roll back and re-raise on failure.
    Uniqueness violations surface as ``ConflictError``.
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("Conflicting record already exists") from exc
    except Exception:
        db.session.rollback()
        raise
