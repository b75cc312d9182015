import enum
import uuid
from datetime import timedelta

from models import db
from utils.geo_utils import Coordinate


class SessionStatus(enum.Enum):
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"
    EXPIRED = "EXPIRED"


def new_session_id():
    return uuid.uuid4().hex


class AttendanceSession(db.Model):
    id = db.Column(db.String(32), primary_key=True, default=new_session_id)
    owner_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    course_code = db.Column(db.String(20), nullable=True)
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    status = db.Column(db.Enum(SessionStatus, native_enum=False), nullable=False, default=SessionStatus.ACTIVE)
    start_time = db.Column(db.DateTime, nullable=False)
    duration_seconds = db.Column(db.Integer, nullable=False)
    end_time = db.Column(db.DateTime, nullable=True)
    token = db.Column(db.String(200), nullable=True)
    deleted_at = db.Column(db.DateTime, nullable=True)

    owner = db.relationship("User")

    @property
    def anchor(self):
        return Coordinate(self.latitude, self.longitude)

    @property
    def deadline(self):
        return self.start_time + timedelta(seconds=self.duration_seconds)

    @property
    def is_active(self):
        return self.status is SessionStatus.ACTIVE

    def to_dict(self):
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "name": self.name,
            "courseCode": self.course_code,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "status": self.status.value,
            "startTime": self.start_time.isoformat(),
            "durationSeconds": self.duration_seconds,
            "endTime": self.end_time.isoformat() if self.end_time else None,
            "token": self.token,
        }
