import logging
import threading

from models.session_model import AttendanceSession, SessionStatus, new_session_id

logger = logging.getLogger(__name__)


class NotSessionOwnerError(Exception):
    pass


class ExpiryScheduler:
    """One-shot expiry timers keyed by session id."""

    def __init__(self):
        self._lock = threading.Lock()
        self._timers = {}

    def schedule(self, session_id, delay_seconds, callback):
        timer = threading.Timer(max(delay_seconds, 0), self._fire, args=(session_id, callback))
        timer.daemon = True
        with self._lock:
            old = self._timers.pop(session_id, None)
            self._timers[session_id] = timer
        if old is not None:
            old.cancel()
        timer.start()

    def _fire(self, session_id, callback):
        with self._lock:
            self._timers.pop(session_id, None)
        try:
            callback(session_id)
        except Exception:
            logger.exception("expiry timer for session %s failed", session_id)

    def cancel(self, session_id):
        with self._lock:
            timer = self._timers.pop(session_id, None)
        if timer is None:
            return False
        timer.cancel()
        return True

    def pending(self):
        with self._lock:
            return sorted(self._timers)


class SessionLifecycle:
    """
    ACTIVE -> ENDED (owner ends it) and ACTIVE -> EXPIRED (window elapsed).
    Both terminal states are final; transitioning them again does nothing.
    """

    def __init__(self, store, codec, clock, scheduler, duration_seconds, app=None):
        self.store = store
        self.codec = codec
        self.clock = clock
        self.scheduler = scheduler
        self.duration_seconds = duration_seconds
        self._app = app

    def open_session(self, owner_id, name, anchor, course_code=None):
        session_id = new_session_id()
        session = AttendanceSession(
            id=session_id,
            owner_id=owner_id,
            name=name,
            course_code=course_code,
            latitude=anchor.latitude,
            longitude=anchor.longitude,
            status=SessionStatus.ACTIVE,
            start_time=self.clock.now(),
            duration_seconds=self.duration_seconds,
            end_time=None,
            token=self.codec.issue(session_id),
        )
        self.store.save_session(session)
        if self.scheduler is not None:
            # must fire after the deadline, expire_if_due ignores earlier calls
            self.scheduler.schedule(session_id, self.duration_seconds + 1, self._on_timer)
        logger.info("session %s opened by user %s for %ss", session_id, owner_id, self.duration_seconds)
        return session

    def expire_if_due(self, session):
        if not session.is_active or self.clock.now() <= session.deadline:
            return False
        session.status = SessionStatus.EXPIRED
        session.end_time = session.deadline
        self.store.save_session(session)
        self._cancel_timer(session.id)
        logger.info("session %s expired at %s", session.id, session.end_time.isoformat())
        return True

    def expire_by_id(self, session_id):
        session = self.store.find_session(session_id)
        if session is None:
            return False
        return self.expire_if_due(session)

    def end_session(self, session, acting_user_id):
        if session.owner_id != acting_user_id:
            raise NotSessionOwnerError(session.id)
        self.expire_if_due(session)
        if not session.is_active:
            return False
        session.status = SessionStatus.ENDED
        session.end_time = self.clock.now()
        self.store.save_session(session)
        self._cancel_timer(session.id)
        logger.info("session %s ended by owner", session.id)
        return True

    def _cancel_timer(self, session_id):
        if self.scheduler is not None:
            self.scheduler.cancel(session_id)

    def _on_timer(self, session_id):
        if self._app is None:
            self.expire_by_id(session_id)
            return
        with self._app.app_context():
            self.expire_by_id(session_id)
