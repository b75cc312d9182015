from flask import Blueprint, jsonify, g, current_app

from routes.errors import ApiError, json_body
from services.notifier import user_channel
from services.session_lifecycle import NotSessionOwnerError
from utils.geo_utils import Coordinate
from utils.jwt_utils import login_required
from utils.qr_utils import render_qr_png_base64

faculty_bp = Blueprint("faculty", __name__)


def _services():
    return current_app.extensions["attendance"]


def _owned_session(session_id):
    session = _services().store.find_session(session_id)
    if session is None:
        raise ApiError(404, "Session not found")
    if session.owner_id != g.user.id:
        raise ApiError(403, "You can only manage your own sessions")
    return session


@faculty_bp.route("/sessions", methods=["POST"])
@login_required("lecturer")
def create_session():
    data = json_body()
    name = (data.get("name") or "").strip()
    if not name:
        raise ApiError(400, "Session name is required")
    try:
        anchor = Coordinate.parse(data.get("latitude"), data.get("longitude"))
    except ValueError as e:
        raise ApiError(400, f"Validation error: {e}") from None

    session = _services().lifecycle.open_session(
        owner_id=g.user.id,
        name=name,
        anchor=anchor,
        course_code=data.get("courseCode"),
    )
    body = session.to_dict()
    body["qrCodeImage"] = render_qr_png_base64(session.token)
    return jsonify({"message": "Session created successfully", "session": body}), 201


@faculty_bp.route("/sessions/<session_id>/end", methods=["POST"])
@login_required("lecturer")
def end_session(session_id):
    services = _services()
    session = services.store.find_session(session_id)
    if session is None:
        raise ApiError(404, "Session not found")
    try:
        ended = services.lifecycle.end_session(session, g.user.id)
    except NotSessionOwnerError:
        raise ApiError(403, "You can only end your own sessions") from None
    if not ended:
        raise ApiError(400, "Session is already ended or expired")
    return jsonify({"message": "Session ended successfully", "session": session.to_dict()})


@faculty_bp.route("/sessions", methods=["GET"])
@login_required("lecturer")
def list_sessions():
    services = _services()
    sessions = services.store.sessions_for_owner(g.user.id)
    result = []
    for s in sessions:
        services.lifecycle.expire_if_due(s)
        item = s.to_dict()
        item["attendanceCount"] = s.records.count()
        result.append(item)
    return jsonify({"sessions": result})


@faculty_bp.route("/sessions/<session_id>", methods=["GET"])
@login_required("lecturer")
def get_session(session_id):
    services = _services()
    session = _owned_session(session_id)
    services.lifecycle.expire_if_due(session)
    records = services.store.attendance_for_session(session.id)
    body = session.to_dict()
    body["attendance"] = [r.to_dict() for r in records]
    body["attendanceCount"] = len(records)
    return jsonify({"session": body})


@faculty_bp.route("/sessions/<session_id>/qr", methods=["GET"])
@login_required("lecturer")
def session_qr(session_id):
    session = _owned_session(session_id)
    return jsonify({"token": session.token, "qrCodeImage": render_qr_png_base64(session.token)})


@faculty_bp.route("/sessions/<session_id>", methods=["DELETE"])
@login_required("lecturer")
def delete_session(session_id):
    services = _services()
    session = _owned_session(session_id)
    session.deleted_at = services.clock.now()
    services.store.save_session(session)
    if services.scheduler is not None:
        services.scheduler.cancel(session.id)
    return jsonify({"message": "Session deleted successfully"})


@faculty_bp.route("/sessions/<session_id>/attendance", methods=["POST"])
@login_required("lecturer")
def mark_manual_attendance(session_id):
    data = json_body()
    claimant = (data.get("claimantExternalId") or "").strip()
    if not claimant:
        raise ApiError(400, "claimantExternalId is required")

    result = _services().admission.admit_manual_claim(session_id, claimant, g.user.id)
    if not result.accepted:
        rejection = result.rejection
        raise ApiError(rejection.http_status, rejection.message, rejection.reason.value)
    return jsonify({"message": "Attendance marked successfully", "attendance": result.record.to_dict()}), 201


@faculty_bp.route("/notifications", methods=["GET"])
@login_required("lecturer")
def notifications():
    return jsonify({"events": _services().notifier.drain(user_channel(g.user.id))})
