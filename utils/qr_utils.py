import base64
import hashlib
import hmac
import io
import logging
from typing import NamedTuple

import qrcode
from qrcode.constants import ERROR_CORRECT_H

logger = logging.getLogger(__name__)

QR_TOKEN_MAX_AGE_MS = 10 * 60 * 1000  # a QR code stays scannable for 10 minutes


class TokenClaims(NamedTuple):
    session_id: str
    issued_at_ms: int


class SessionTokenCodec:
    """
    Signs and checks the token shown in a session's QR code.

    A token is "sessionId:issuedAtMillis:signature" where the signature is
    the hex HMAC-SHA256 of "sessionId:issuedAtMillis" under the shared secret.
    """

    def __init__(self, secret, clock, max_age_ms=QR_TOKEN_MAX_AGE_MS):
        if not secret:
            raise ValueError("QR code secret must be configured")
        self._secret = secret.encode("utf-8")
        self._clock = clock
        self.max_age_ms = max_age_ms

    def _sign(self, session_id, issued_at_ms):
        data = f"{session_id}:{issued_at_ms}".encode("utf-8")
        return hmac.new(self._secret, data, hashlib.sha256).hexdigest()

    def issue(self, session_id: str) -> str:
        if ":" in session_id:
            raise ValueError("session id may not contain ':'")
        issued_at = self._clock.now_millis()
        return f"{session_id}:{issued_at}:{self._sign(session_id, issued_at)}"

    def validate(self, token):
        """
        Return TokenClaims for a good token, None otherwise.
        Callers never learn which check failed.
        """
        if not isinstance(token, str):
            return None
        parts = token.split(":")
        if len(parts) != 3:
            logger.debug("token rejected: wrong segment count")
            return None

        session_id, issued_str, signature = parts
        if not session_id or not (issued_str.isascii() and issued_str.isdigit()):
            logger.debug("token rejected: malformed fields")
            return None
        issued_at = int(issued_str)

        expected = self._sign(session_id, issued_str)
        if not hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8")):
            logger.debug("token rejected: bad signature")
            return None

        if self._clock.now_millis() - issued_at > self.max_age_ms:
            logger.debug("token rejected: older than %d ms", self.max_age_ms)
            return None

        return TokenClaims(session_id, issued_at)


def render_qr_png_base64(token: str) -> str:
    """Render the token as a PNG QR code, returned as a data URL."""
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_H, box_size=10, border=2)
    qr.add_data(token)
    qr.make(fit=True)
    img = qr.make_image()

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    qr_b64 = base64.b64encode(buf.getvalue()).decode("utf-8")
    return f"data:image/png;base64,{qr_b64}"
