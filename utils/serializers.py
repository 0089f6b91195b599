"""
Wire format for the browser client.

The client speaks Portuguese field names and encodes the photo list as a
JSON string; models keep English names and real lists.
"""
import json
from datetime import datetime
from decimal import Decimal

from flask import request

from models.venue import VenueStatus
from models.reservation import ReservationStatus
from utils.errors import ValidationError

VENUE_STATUS_WIRE = {
    VenueStatus.PENDING: "pendente",
    VenueStatus.APPROVED: "aprovado",
    VenueStatus.REJECTED: "reprovado",
}

RESERVATION_STATUS_WIRE = {
    ReservationStatus.ACTIVE: "ativa",
    ReservationStatus.CANCELLED: "cancelada",
    ReservationStatus.COMPLETED: "concluida",
}
RESERVATION_STATUS_FROM_WIRE = {v: k for k, v in RESERVATION_STATUS_WIRE.items()}


def _iso(value):
    return value.isoformat() if value else None


def _money(value):
    if value is None:
        return None
    return float(Decimal(value))


def user_to_json(user) -> dict:
    return {
        "id": user.id,
        "nome": user.name,
        "email": user.email,
        "user_type": user.role,
    }


def session_to_json(user, token: str, expires_at: datetime) -> dict:
    return {
        "user": user_to_json(user),
        "token": token,
        "expires_at": _iso(expires_at),
    }


def venue_to_json(venue) -> dict:
    uris = venue.photo_uris
    return {
        "id": venue.id,
        "user_id": venue.owner_user_id,
        "nome": venue.name,
        "descricao": venue.description,
        "endereco": venue.address,
        "esporte": venue.sport,
        "valor_hora": _money(venue.hourly_rate),
        "disponibilidade": venue.availability,
        "telefone": venue.phone,
        "fotos": json.dumps(uris) if uris else None,
        "status_aprovacao": VENUE_STATUS_WIRE[venue.status_enum],
        "created_at": _iso(venue.created_at),
        "updated_at": _iso(venue.updated_at),
    }


def reservation_to_json(reservation) -> dict:
    venue = reservation.venue
    user = reservation.user
    day = reservation.reservation_date
    return {
        "id": reservation.id,
        "local_id": reservation.venue_id,
        "user_id": reservation.user_id,
        "nome_usuario": user.name if user else None,
        "data_reserva": day.isoformat(),
        "hora_inicio": reservation.start_time.strftime("%H:%M"),
        "hora_fim": reservation.end_time.strftime("%H:%M"),
        "data_inicio": datetime.combine(day, reservation.start_time).isoformat(),
        "data_fim": datetime.combine(day, reservation.end_time).isoformat(),
        "status": RESERVATION_STATUS_WIRE[reservation.status_enum],
        "observacoes": reservation.notes,
        "valor_total": _money(reservation.total),
        "avaliacao": reservation.rating,
        "local_nome": venue.name if venue else reservation.venue_name,
        "local_endereco": venue.address if venue else None,
        "local_esporte": venue.sport if venue else None,
        "created_at": _iso(reservation.created_at),
    }


def notification_to_json(notification) -> dict:
    return {
        "id": notification.id,
        "tipo": notification.kind,
        "mensagem": notification.message,
        "lida": notification.read,
        "created_at": _iso(notification.created_at),
    }


def pick(data: dict, *keys):
    """Return the first present, non-None value among the accepted spellings of a field."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def parse_photos(value):
    """
    Accept the photo list as a real list or as the JSON-encoded string the
    client sends. A bare string that is not a JSON array is one URL.
    """
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        text = value.strip()
        if not text.startswith("["):
            return [text]
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError:
            raise ValidationError("fotos must be a JSON array of URLs")
        if not isinstance(decoded, list):
            raise ValidationError("fotos must be a JSON array of URLs")
        return decoded
    raise ValidationError("fotos must be a list of URLs")


def json_body() -> dict:
    """The request's JSON object; an absent or unparsable body reads as empty."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
