import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from models import db
from models.attendance_model import AttendanceRecord
from models.session_model import AttendanceSession
from models.user_model import User

logger = logging.getLogger(__name__)


class DuplicateAttendanceError(Exception):
    """The (session, claimant) pair already has a record."""


class AttendanceStore:
    """Database access for sessions, attendance records and principals."""

    def find_session(self, session_id):
        session = db.session.get(AttendanceSession, session_id)
        if session is None or session.deleted_at is not None:
            return None
        return session

    def save_session(self, session):
        db.session.add(session)
        db.session.commit()
        return session

    def sessions_for_owner(self, owner_id):
        return (
            AttendanceSession.query.filter_by(owner_id=owner_id, deleted_at=None)
            .order_by(AttendanceSession.start_time.desc())
            .all()
        )

    def find_attendance(self, session_id, claimant_id):
        return AttendanceRecord.query.filter_by(session_id=session_id, claimant_id=claimant_id).first()

    def insert_attendance(self, record):
        """
        Insert a record, relying on the uq_session_claimant constraint.
        A uniqueness violation surfaces as DuplicateAttendanceError; any
        other database failure propagates unchanged.
        """
        db.session.add(record)
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            if AttendanceRecord.has_marked_attendance(record.claimant_id, record.session_id):
                raise DuplicateAttendanceError(record.session_id, record.claimant_id) from e
            raise
        return record

    def attendance_for_session(self, session_id):
        return AttendanceRecord.get_attendance_for_session(session_id)

    def attendance_for_claimant(self, claimant_id, limit=50, offset=0):
        return AttendanceRecord.get_attendance_for_claimant(claimant_id, limit=limit, offset=offset)

    def find_principal_by_external_id(self, external_id):
        """Look a student up by roll number, username or email."""
        if not external_id:
            return None
        return User.query.filter(
            User.role == "student",
            or_(User.roll_no == external_id, User.username == external_id, User.email == external_id),
        ).first()

    def find_user(self, user_id):
        return db.session.get(User, user_id)
