from flask import Blueprint, request, jsonify, g

from services import approval, venues
from utils.audit import log_event
from utils.auth_context import login_required
from utils.serializers import json_body, parse_photos, venue_to_json

venues_bp = Blueprint("venues", __name__, url_prefix="/api/locais")

# model field -> accepted payload keys, first match wins
_FIELD_KEYS = {
    "name": ("nome", "name"),
    "description": ("descricao", "description"),
    "address": ("endereco", "address"),
    "sport": ("esporte", "sport"),
    "hourly_rate": ("valor_hora", "valorHora", "hourly_rate"),
    "availability": ("disponibilidade", "availability"),
    "phone": ("telefone", "phone"),
    "photos": ("fotos", "photos"),
}


def _payload() -> dict:
    if request.is_json:
        return json_body()
    # multipart/form submissions; uploaded files themselves are ignored
    return request.form.to_dict()


def _venue_fields(data: dict) -> dict:
    fields = {}
    for field, keys in _FIELD_KEYS.items():
        for key in keys:
            if key in data:
                fields[field] = data[key]
                break
    if "photos" in fields:
        fields["photos"] = parse_photos(fields["photos"])
    return fields


@venues_bp.get("")
def list_public_venues():
    rows = venues.list_public(
        sport=(request.args.get("esporte") or "").strip() or None,
        query=(request.args.get("q") or "").strip() or None,
    )
    return jsonify([venue_to_json(v) for v in rows]), 200


@venues_bp.post("")
@login_required
def create_venue():
    venue = venues.create_venue(g.user, _venue_fields(_payload()))
    log_event("VENUE_CREATE", user_id=g.user.id, entity="venue", entity_id=venue.id)
    return jsonify(venue_to_json(venue)), 201


@venues_bp.get("/meus")
@login_required
def my_venues():
    rows = venues.list_mine(g.user)
    return jsonify([venue_to_json(v) for v in rows]), 200


@venues_bp.get("/pendentes")
@login_required
def pending_venues():
    rows = venues.list_pending(g.user)
    return jsonify([venue_to_json(v) for v in rows]), 200


@venues_bp.get("/<int:venue_id>")
def venue_detail(venue_id: int):
    venue = venues.get_venue(venue_id, g.get("user"))
    return jsonify(venue_to_json(venue)), 200


@venues_bp.put("/<int:venue_id>")
@login_required
def update_venue(venue_id: int):
    fields = _venue_fields(_payload())
    venue = venues.update_venue(venue_id, g.user, fields)
    log_event(
        "VENUE_UPDATE",
        user_id=g.user.id,
        entity="venue",
        entity_id=venue.id,
        metadata={"fields": sorted(fields)},
    )
    return jsonify(venue_to_json(venue)), 200


@venues_bp.delete("/<int:venue_id>")
@login_required
def delete_venue(venue_id: int):
    snapshot = venues.delete_venue(venue_id, g.user)
    log_event("VENUE_DELETE", user_id=g.user.id, entity="venue", entity_id=venue_id, metadata=snapshot)
    return jsonify(message="Venue deleted"), 200


@venues_bp.patch("/<int:venue_id>/aprovar")
@login_required
def approve_venue(venue_id: int):
    venue = approval.approve(venue_id, g.user)
    log_event("VENUE_APPROVE", user_id=g.user.id, entity="venue", entity_id=venue.id)
    return jsonify(venue_to_json(venue)), 200


@venues_bp.delete("/<int:venue_id>/reprovar")
@login_required
def reject_venue(venue_id: int):
    snapshot = approval.reject(venue_id, g.user)
    # the audit row is the only trace left of a rejected venue
    log_event("VENUE_REJECT", user_id=g.user.id, entity="venue", entity_id=venue_id, metadata=snapshot)
    return jsonify(message="Venue rejected and removed", id=venue_id), 200
