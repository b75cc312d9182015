import base64

import pytest

from conftest import FrozenClock
from utils.qr_utils import QR_TOKEN_MAX_AGE_MS, SessionTokenCodec, render_qr_png_base64

SECRET = "unit-test-secret"


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def codec(clock):
    return SessionTokenCodec(SECRET, clock)


def test_issue_then_validate_round_trips(codec, clock):
    token = codec.issue("a1b2c3")
    claims = codec.validate(token)
    assert claims is not None
    assert claims.session_id == "a1b2c3"
    assert claims.issued_at_ms == clock.now_millis()


def test_token_has_three_parts(codec, clock):
    session_id, issued, signature = codec.issue("a1b2c3").split(":")
    assert session_id == "a1b2c3"
    assert int(issued) == clock.now_millis()
    assert len(signature) == 64


def test_any_single_character_change_in_signature_is_rejected(codec):
    token = codec.issue("a1b2c3")
    head, signature = token.rsplit(":", 1)
    for i, ch in enumerate(signature):
        replacement = "0" if ch != "0" else "1"
        tampered = f"{head}:{signature[:i]}{replacement}{signature[i + 1:]}"
        assert codec.validate(tampered) is None, f"position {i} accepted"


def test_changing_session_id_breaks_signature(codec):
    _, issued, signature = codec.issue("a1b2c3").split(":")
    assert codec.validate(f"a1b2c4:{issued}:{signature}") is None


def test_changing_timestamp_breaks_signature(codec):
    session_id, issued, signature = codec.issue("a1b2c3").split(":")
    assert codec.validate(f"{session_id}:{int(issued) + 1}:{signature}") is None
    assert codec.validate(f"{session_id}:0{issued}:{signature}") is None


def test_token_from_another_secret_is_rejected(clock):
    token = SessionTokenCodec("some-other-secret", clock).issue("a1b2c3")
    assert SessionTokenCodec(SECRET, clock).validate(token) is None


@pytest.mark.parametrize("token", [
    "",
    "a1b2c3",
    "a1b2c3:1700000000000",
    "a1b2c3:1700000000000:abc:def",
    "a1b2c3:not-a-number:abcdef",
    ":1700000000000:abcdef",
    "a1b2c3:-5:abcdef",
    "a1b2c3:1700000000000:ünïcode",
    None,
    12345,
])
def test_malformed_tokens_are_rejected(codec, token):
    assert codec.validate(token) is None


def test_token_one_ms_past_max_age_is_rejected(codec, clock):
    token = codec.issue("a1b2c3")
    clock.advance(milliseconds=QR_TOKEN_MAX_AGE_MS + 1)
    assert codec.validate(token) is None


def test_token_one_ms_before_max_age_is_accepted(codec, clock):
    token = codec.issue("a1b2c3")
    clock.advance(milliseconds=QR_TOKEN_MAX_AGE_MS - 1)
    assert codec.validate(token).session_id == "a1b2c3"


def test_token_exactly_at_max_age_is_accepted(codec, clock):
    token = codec.issue("a1b2c3")
    clock.advance(milliseconds=QR_TOKEN_MAX_AGE_MS)
    assert codec.validate(token) is not None


def test_custom_max_age(clock):
    codec = SessionTokenCodec(SECRET, clock, max_age_ms=1000)
    token = codec.issue("a1b2c3")
    clock.advance(milliseconds=1001)
    assert codec.validate(token) is None


def test_session_id_with_colon_cannot_be_issued(codec):
    with pytest.raises(ValueError):
        codec.issue("bad:id")


def test_empty_secret_is_refused(clock):
    with pytest.raises(ValueError):
        SessionTokenCodec("", clock)


def test_render_qr_returns_png_data_url(codec):
    url = render_qr_png_base64(codec.issue("a1b2c3"))
    prefix = "data:image/png;base64,"
    assert url.startswith(prefix)
    assert base64.b64decode(url[len(prefix):]).startswith(b"\x89PNG")
