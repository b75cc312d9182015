from flask import Blueprint, request, jsonify, g, current_app

from routes.errors import ApiError, json_body
from services.notifier import user_channel
from utils.geo_utils import Coordinate
from utils.jwt_utils import login_required

student_bp = Blueprint("student", __name__)

MAX_PAGE_SIZE = 200


@student_bp.route("/scan_qr", methods=["POST"])
@login_required("student")
def scan_qr():
    data = json_body()
    token = data.get("token")
    if not token:
        raise ApiError(400, "No token received")
    try:
        location = Coordinate.parse(data.get("latitude"), data.get("longitude"))
    except ValueError as e:
        raise ApiError(400, f"Validation error: {e}") from None

    services = current_app.extensions["attendance"]
    result = services.admission.admit_claim(
        token,
        g.user.id,
        location,
        current_app.config["MAX_CLAIM_DISTANCE_METERS"],
    )
    if not result.accepted:
        rejection = result.rejection
        raise ApiError(rejection.http_status, rejection.message, rejection.reason.value)

    return jsonify({"message": "Attendance marked successfully", "attendance": result.record.to_dict()}), 201


@student_bp.route("/attendance", methods=["GET"])
@login_required("student")
def attendance_history():
    limit = request.args.get("limit", default=50, type=int)
    offset = request.args.get("offset", default=0, type=int)
    if limit < 1 or offset < 0:
        raise ApiError(400, "limit must be positive and offset non-negative")
    limit = min(limit, MAX_PAGE_SIZE)

    store = current_app.extensions["attendance"].store
    records, total = store.attendance_for_claimant(g.user.id, limit=limit, offset=offset)
    return jsonify({
        "attendance": [r.to_dict() for r in records],
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "hasMore": offset + limit < total,
        },
    })


@student_bp.route("/notifications", methods=["GET"])
@login_required("student")
def notifications():
    notifier = current_app.extensions["attendance"].notifier
    return jsonify({"events": notifier.drain(user_channel(g.user.id))})
