import enum

from models import db


class AttendanceStatus(enum.Enum):
    VALID = "VALID"


class AttendanceOrigin(enum.Enum):
    SCANNED = "SCANNED"
    MANUALLY_ENTERED = "MANUALLY_ENTERED"


class AttendanceRecord(db.Model):
    """One accepted claim. Written once, never updated."""

    __table_args__ = (
        db.UniqueConstraint("session_id", "claimant_id", name="uq_session_claimant"),
    )

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.String(32), db.ForeignKey("attendance_session.id"), nullable=False)
    claimant_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    latitude = db.Column(db.Float, nullable=False, default=0.0)
    longitude = db.Column(db.Float, nullable=False, default=0.0)
    distance_meters = db.Column(db.Float, nullable=False, default=0.0)
    status = db.Column(db.Enum(AttendanceStatus, native_enum=False), nullable=False, default=AttendanceStatus.VALID)
    origin = db.Column(db.Enum(AttendanceOrigin, native_enum=False), nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False)

    claimant = db.relationship("User")
    session = db.relationship("AttendanceSession", backref=db.backref("records", lazy="dynamic"))

    @classmethod
    def has_marked_attendance(cls, claimant_id, session_id):
        return db.session.query(
            cls.query.filter_by(claimant_id=claimant_id, session_id=session_id).exists()
        ).scalar()

    @classmethod
    def get_attendance_for_session(cls, session_id):
        return cls.query.filter_by(session_id=session_id).order_by(cls.timestamp.desc()).all()

    @classmethod
    def get_attendance_for_claimant(cls, claimant_id, limit=50, offset=0):
        query = cls.query.filter_by(claimant_id=claimant_id)
        total = query.count()
        rows = query.order_by(cls.timestamp.desc()).limit(limit).offset(offset).all()
        return rows, total

    def to_dict(self):
        return {
            "id": self.id,
            "sessionId": self.session_id,
            "claimantId": self.claimant_id,
            "claimantName": self.claimant.name if self.claimant else None,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "distanceMeters": self.distance_meters,
            "status": self.status.value,
            "origin": self.origin.value,
            "timestamp": self.timestamp.isoformat(),
        }
