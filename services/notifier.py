import logging
import threading
from collections import defaultdict, deque

logger = logging.getLogger(__name__)


def user_channel(user_id):
    return f"user:{user_id}"


class MailboxNotifier:
    """
    Keeps undelivered events per subscriber channel in memory.

    Clients poll their own channel; the oldest events are dropped once a
    mailbox holds max_size entries.
    """

    def __init__(self, max_size=100):
        self._lock = threading.Lock()
        self._boxes = defaultdict(lambda: deque(maxlen=max_size))

    def notify(self, channel, payload):
        with self._lock:
            self._boxes[channel].append(payload)
        logger.debug("queued %s for %s", payload.get("event"), channel)

    def drain(self, channel):
        with self._lock:
            box = self._boxes.pop(channel, None)
        return list(box) if box else []
