from __future__ import annotations

import base64

import jwt
import pytest

from pinbox_syncer.adapters.pinbox.auth import derive_user_id
from pinbox_syncer.domain.exceptions import AuthError
from tests.conftest import TEST_USER_ID, make_token


def test_user_id_comes_from_aud_claim():
    assert derive_user_id(make_token()) == TEST_USER_ID


def test_numeric_aud_is_stringified():
    assert derive_user_id(make_token(aud=98765)) == "98765"


def test_list_aud_uses_first_entry():
    assert derive_user_id(make_token(aud=["first", "second"])) == "first"


def test_surrounding_whitespace_ignored():
    assert derive_user_id(f"  {make_token()}\n") == TEST_USER_ID


@pytest.mark.parametrize(
    "token",
    [
        "",
        "   ",
        "not-a-jwt",
        "a.b",
        "a.b.c.d",
        "header.!!!notbase64!!!.sig",
    ],
)
def test_malformed_tokens_raise(token):
    with pytest.raises(AuthError):
        derive_user_id(token)


def test_missing_aud_raises():
    with pytest.raises(AuthError, match="no user claim"):
        derive_user_id(make_token(aud=None, sub="someone"))


def test_blank_aud_raises():
    with pytest.raises(AuthError):
        derive_user_id(make_token(aud="  "))


def _segment(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def test_non_object_payload_raises():
    header = _segment(b'{"alg": "HS256", "typ": "JWT"}')
    payload = _segment(b"[1, 2]")
    token = f"{header}.{payload}.{_segment(b'sig')}"
    with pytest.raises(AuthError, match="cannot be decoded"):
        derive_user_id(token)


def test_signature_and_expiry_are_not_checked():
    token = jwt.encode(
        {"aud": "someone", "exp": 1}, "another-signing-key-0123456789abcdef", algorithm="HS256"
    )
    assert derive_user_id(token) == "someone"
