import pytest

from mingle.errors import Unauthenticated
from mingle.webapp.auth import Credentials, verify_token


class _FixedClock:
    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.unit
def test_issue_and_verify_token():
    credentials = Credentials("secret", ttl_seconds=60, clock=_FixedClock(1_000))
    token = credentials.issue_token("user-1")

    principal = verify_token(token, "secret", now=1_030)

    assert principal.user_id == "user-1"
    assert principal.issued_at == 1_000
    assert principal.expires_at == 1_060


@pytest.mark.unit
def test_expired_token_is_rejected():
    token = Credentials("secret", ttl_seconds=60, clock=_FixedClock(1_000)).issue_token("user-1")

    with pytest.raises(Unauthenticated, match="expired"):
        verify_token(token, "secret", now=1_060)


@pytest.mark.unit
def test_wrong_secret_or_tampered_token_is_rejected():
    credentials = Credentials("secret", clock=_FixedClock(1_000))
    token = credentials.issue_token("user-1")
    payload, signature = token.split(".")

    with pytest.raises(Unauthenticated):
        verify_token(token, "other-secret", now=1_000)
    with pytest.raises(Unauthenticated):
        verify_token(payload[:-2] + "xx." + signature, "secret", now=1_000)


@pytest.mark.unit
@pytest.mark.parametrize("token", [None, "", "no-dot", "a.b.c"])
def test_malformed_tokens_are_rejected(token):
    with pytest.raises(Unauthenticated):
        verify_token(token, "secret", now=0)


@pytest.mark.unit
def test_password_hashing():
    credentials = Credentials("secret")
    hashed = credentials.hash_password("hunter22")

    assert hashed != "hunter22"
    assert credentials.verify_password("hunter22", hashed) is True
    assert credentials.verify_password("wrong", hashed) is False
    assert credentials.verify_password("", hashed) is False
