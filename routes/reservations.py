from flask import Blueprint, request, jsonify, g

from models.reservation import ReservationStatus
from services import ledger
from utils.audit import log_event
from utils.auth_context import login_required
from utils.errors import ConflictError, ValidationError
from utils.serializers import RESERVATION_STATUS_FROM_WIRE, json_body, pick, reservation_to_json

reservations_bp = Blueprint("reservations", __name__, url_prefix="/api")


def _parse_status(value):
    if not value:
        return None
    value = value.strip().lower()
    if value in RESERVATION_STATUS_FROM_WIRE:
        return RESERVATION_STATUS_FROM_WIRE[value]
    try:
        return ReservationStatus(value)
    except ValueError:
        raise ValidationError("Unknown status filter")


def _parse_id_list(value):
    if not value:
        return None
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise ValidationError("locais_ids must be a comma-separated list of ids")


# ---------- list (role-scoped) ----------
@reservations_bp.get("/reservas")
@login_required
def list_reservations():
    venue_id = request.args.get("local_id")
    if venue_id is not None:
        if not venue_id.strip().isdigit():
            raise ValidationError("local_id must be an integer")
        venue_id = int(venue_id)

    rows = ledger.list_reservations(
        g.user,
        venue_id=venue_id,
        venue_ids=_parse_id_list(request.args.get("locais_ids")),
        status=_parse_status(request.args.get("status")),
    )
    return jsonify([reservation_to_json(r) for r in rows]), 200


@reservations_bp.get("/minhas-reservas")
@login_required
def my_reservations():
    rows = ledger.list_reservations(g.user, own_only=True, status=_parse_status(request.args.get("status")))
    return jsonify([reservation_to_json(r) for r in rows]), 200


# ---------- book (overlap-safe) ----------
@reservations_bp.post("/reservas")
@login_required
def create_reservation():
    data = json_body()
    venue_id = pick(data, "local_id", "localId")
    if venue_id is None:
        raise ValidationError("local_id required")

    try:
        reservation = ledger.create_reservation(
            venue_id,
            g.user,
            pick(data, "data_reserva", "data"),
            data.get("hora_inicio"),
            data.get("hora_fim"),
            pick(data, "observacoes", "notes"),
        )
    except ConflictError:
        log_event("RESERVATION_FAIL_CONFLICT", user_id=g.user.id, entity="venue", entity_id=venue_id,
                  metadata={"date": pick(data, "data_reserva", "data"),
                            "start": data.get("hora_inicio"), "end": data.get("hora_fim")})
        raise

    log_event("RESERVATION_CREATE", user_id=g.user.id, entity="reservation", entity_id=reservation.id,
              metadata={"venue_id": reservation.venue_id})
    return jsonify(reservation_to_json(reservation)), 201


# ---------- cancel ----------
@reservations_bp.delete("/reservas/<int:reservation_id>")
@login_required
def cancel_reservation(reservation_id: int):
    reservation = ledger.cancel_reservation(reservation_id, g.user)
    log_event("RESERVATION_CANCEL", user_id=g.user.id, entity="reservation", entity_id=reservation.id)
    return jsonify(reservation_to_json(reservation)), 200


@reservations_bp.post("/reservas/<int:reservation_id>/cancelar")
@login_required
def cancel_reservation_alias(reservation_id: int):
    return cancel_reservation(reservation_id)


# ---------- rate ----------
@reservations_bp.post("/reservas/<int:reservation_id>/avaliar")
@login_required
def rate_reservation(reservation_id: int):
    data = json_body()
    reservation = ledger.rate_reservation(reservation_id, g.user, pick(data, "avaliacao", "rating"))
    log_event("RESERVATION_RATE", user_id=g.user.id, entity="reservation", entity_id=reservation.id,
              metadata={"rating": reservation.rating})
    return jsonify(reservation_to_json(reservation)), 200


# ---------- ADMIN: complete ----------
@reservations_bp.patch("/reservas/<int:reservation_id>/concluir")
@login_required
def complete_reservation(reservation_id: int):
    reservation = ledger.complete_reservation(reservation_id, g.user)
    log_event("RESERVATION_COMPLETE", user_id=g.user.id, entity="reservation", entity_id=reservation.id)
    return jsonify(reservation_to_json(reservation)), 200
