import enum
import logging

from models.attendance_model import AttendanceOrigin, AttendanceRecord, AttendanceStatus
from services.notifier import user_channel
from services.storage import DuplicateAttendanceError
from utils.geo_utils import check_proximity

logger = logging.getLogger(__name__)

ATTENDANCE_EVENT = "attendance-update"


class RejectionReason(enum.Enum):
    INVALID_TOKEN = "INVALID_TOKEN"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_NOT_ACTIVE = "SESSION_NOT_ACTIVE"
    DUPLICATE_CLAIM = "DUPLICATE_CLAIM"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    NOT_SESSION_OWNER = "NOT_SESSION_OWNER"
    CLAIMANT_NOT_FOUND = "CLAIMANT_NOT_FOUND"
    ALREADY_MARKED = "ALREADY_MARKED"

    @property
    def http_status(self):
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    RejectionReason.INVALID_TOKEN: 400,
    RejectionReason.SESSION_NOT_FOUND: 404,
    RejectionReason.SESSION_NOT_ACTIVE: 400,
    RejectionReason.DUPLICATE_CLAIM: 409,
    RejectionReason.OUT_OF_RANGE: 400,
    RejectionReason.NOT_SESSION_OWNER: 403,
    RejectionReason.CLAIMANT_NOT_FOUND: 404,
    RejectionReason.ALREADY_MARKED: 409,
}

_MESSAGES = {
    RejectionReason.INVALID_TOKEN: "Invalid or expired QR code",
    RejectionReason.SESSION_NOT_FOUND: "Session not found",
    RejectionReason.SESSION_NOT_ACTIVE: "Session is not active",
    RejectionReason.DUPLICATE_CLAIM: "You have already marked attendance for this session",
    RejectionReason.OUT_OF_RANGE: "You are too far from the lecture location",
    RejectionReason.NOT_SESSION_OWNER: "You can only mark attendance for your own sessions",
    RejectionReason.CLAIMANT_NOT_FOUND: "Student not found",
    RejectionReason.ALREADY_MARKED: "Student has already been marked present",
}


class Rejection:
    def __init__(self, reason, message=None):
        self.reason = reason
        self.message = message or _MESSAGES[reason]

    @property
    def http_status(self):
        return self.reason.http_status

    def __repr__(self):
        return f"Rejection({self.reason.value}, {self.message!r})"


class AdmissionResult:
    def __init__(self, record=None, rejection=None):
        self.record = record
        self.rejection = rejection

    @property
    def accepted(self):
        return self.record is not None

    @classmethod
    def reject(cls, reason, message=None):
        return cls(rejection=Rejection(reason, message))


class AdmissionController:
    """Decides whether a claim of presence becomes an attendance record."""

    def __init__(self, store, codec, lifecycle, notifier, clock):
        self.store = store
        self.codec = codec
        self.lifecycle = lifecycle
        self.notifier = notifier
        self.clock = clock

    def admit_claim(self, token, claimant_id, claimant_location, max_distance_meters):
        """
        Scanned claim. Gates run in order and the first failure is the
        reported reason: token, session, lifecycle, duplicate, proximity.
        """
        claims = self.codec.validate(token)
        if claims is None:
            return self._rejected(RejectionReason.INVALID_TOKEN, claimant_id)

        session = self.store.find_session(claims.session_id)
        if session is None:
            return self._rejected(RejectionReason.SESSION_NOT_FOUND, claimant_id, claims.session_id)

        self.lifecycle.expire_if_due(session)
        if not session.is_active:
            return self._rejected(RejectionReason.SESSION_NOT_ACTIVE, claimant_id, session.id)

        if self.store.find_attendance(session.id, claimant_id) is not None:
            return self._rejected(RejectionReason.DUPLICATE_CLAIM, claimant_id, session.id)

        proximity = check_proximity(claimant_location, session.anchor, max_distance_meters)
        logger.debug(
            "session %s: claimant %s is %.2fm from anchor (max %sm)",
            session.id, claimant_id, proximity.distance_meters, max_distance_meters,
        )
        if not proximity.is_valid:
            message = (
                f"You are too far from the lecture location. You are {proximity.distance_meters:.2f} "
                f"meters away. Maximum allowed distance is {max_distance_meters:g} meters."
            )
            return self._rejected(RejectionReason.OUT_OF_RANGE, claimant_id, session.id, message)

        record = AttendanceRecord(
            session_id=session.id,
            claimant_id=claimant_id,
            latitude=claimant_location.latitude,
            longitude=claimant_location.longitude,
            distance_meters=proximity.distance_meters,
            status=AttendanceStatus.VALID,
            origin=AttendanceOrigin.SCANNED,
            timestamp=self.clock.now(),
        )
        try:
            self.store.insert_attendance(record)
        except DuplicateAttendanceError:
            return self._rejected(RejectionReason.DUPLICATE_CLAIM, claimant_id, session.id)

        logger.info("session %s: claimant %s admitted at %.2fm", session.id, claimant_id, record.distance_meters)
        self._publish(session, record, [session.owner_id])
        return AdmissionResult(record=record)

    def admit_manual_claim(self, session_id, claimant_identifier, acting_owner_id):
        """
        Lecturer-entered attendance. No token and no location: only the
        session owner may do this, and the record carries zero coordinates.
        """
        session = self.store.find_session(session_id)
        if session is None:
            return self._rejected(RejectionReason.SESSION_NOT_FOUND, claimant_identifier, session_id)

        if session.owner_id != acting_owner_id:
            logger.warning("user %s tried to mark attendance on session %s they do not own", acting_owner_id, session.id)
            return AdmissionResult.reject(RejectionReason.NOT_SESSION_OWNER)

        self.lifecycle.expire_if_due(session)
        if not session.is_active:
            return self._rejected(RejectionReason.SESSION_NOT_ACTIVE, claimant_identifier, session.id)

        claimant = self.store.find_principal_by_external_id(claimant_identifier)
        if claimant is None:
            return self._rejected(RejectionReason.CLAIMANT_NOT_FOUND, claimant_identifier, session.id)

        if self.store.find_attendance(session.id, claimant.id) is not None:
            return self._rejected(RejectionReason.ALREADY_MARKED, claimant.id, session.id)

        record = AttendanceRecord(
            session_id=session.id,
            claimant_id=claimant.id,
            latitude=0.0,
            longitude=0.0,
            distance_meters=0.0,
            status=AttendanceStatus.VALID,
            origin=AttendanceOrigin.MANUALLY_ENTERED,
            timestamp=self.clock.now(),
        )
        try:
            self.store.insert_attendance(record)
        except DuplicateAttendanceError:
            return self._rejected(RejectionReason.ALREADY_MARKED, claimant.id, session.id)

        logger.info("session %s: claimant %s marked present by owner", session.id, claimant.id)
        self._publish(session, record, [session.owner_id, claimant.id])
        return AdmissionResult(record=record)

    def _rejected(self, reason, claimant, session_id=None, message=None):
        logger.info("claim by %s on session %s rejected: %s", claimant, session_id, reason.value)
        return AdmissionResult.reject(reason, message)

    def _publish(self, session, record, subscriber_ids):
        payload = {
            "event": ATTENDANCE_EVENT,
            "sessionId": session.id,
            "attendance": record.to_dict(),
        }
        for subscriber_id in subscriber_ids:
            try:
                self.notifier.notify(user_channel(subscriber_id), payload)
            except Exception:
                # delivery is best effort; the record is already committed
                logger.warning("notification to user %s failed", subscriber_id, exc_info=True)
