from datetime import datetime, timedelta

import pytest

from app import create_app
from models import db
from models.user_model import User
from utils.clock import to_millis
from utils.geo_utils import Coordinate
from utils.jwt_utils import create_access_token

START = datetime(2026, 3, 2, 9, 0, 0)
ANCHOR = Coordinate(5.6037, -0.1870)


class FrozenClock:
    def __init__(self, start=START):
        self.current = start

    def now(self):
        return self.current

    def now_millis(self):
        return to_millis(self.current)

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


class RecordingScheduler:
    """Remembers scheduled expiry callbacks; tests fire them by hand."""

    def __init__(self):
        self.timers = {}
        self.cancelled = []

    def schedule(self, session_id, delay_seconds, callback):
        self.timers[session_id] = (delay_seconds, callback)

    def cancel(self, session_id):
        if self.timers.pop(session_id, None) is None:
            return False
        self.cancelled.append(session_id)
        return True

    def pending(self):
        return sorted(self.timers)

    def fire(self, session_id):
        _, callback = self.timers.pop(session_id)
        callback(session_id)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def scheduler():
    return RecordingScheduler()


@pytest.fixture
def app(clock, scheduler):
    app = create_app("testing", clock=clock, scheduler=scheduler)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.extensions["attendance"]


def _make_user(username, role, name, roll_no=None, email=None):
    user = User(username=username, role=role, name=name, roll_no=roll_no, email=email)
    user.set_password("password123")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def lecturer(app):
    return _make_user("mensah", "lecturer", "Dr. Mensah", email="mensah@uni.example")


@pytest.fixture
def other_lecturer(app):
    return _make_user("owusu", "lecturer", "Dr. Owusu")


@pytest.fixture
def student(app):
    return _make_user("ama", "student", "Ama Boateng", roll_no="CS2023-001", email="ama@uni.example")


@pytest.fixture
def other_student(app):
    return _make_user("kofi", "student", "Kofi Asante", roll_no="CS2023-002")


@pytest.fixture
def auth_header():
    def make(user):
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return make


@pytest.fixture
def open_session(services, lecturer):
    return services.lifecycle.open_session(lecturer.id, "Algorithms L1", ANCHOR, course_code="CS301")
