import time

from userportal.auth.tokens import TokenClaims, issue_token, verify_token

SECRET = "s3cret"


def test_token_decodes_to_issued_claims():
    claims = TokenClaims(id=7, username="alice", email="alice@x.com")
    token = issue_token(claims, secret=SECRET)
    assert verify_token(token, secret=SECRET) == claims


def test_token_rejected_after_expiry(monkeypatch):
    token = issue_token(TokenClaims(id=1, username="alice", email="a@x.com"), secret=SECRET)
    now = time.time()
    monkeypatch.setattr(time, "time", lambda: now + 24 * 60 * 60 + 5)
    assert verify_token(token, secret=SECRET) is None


def test_token_still_valid_just_before_expiry(monkeypatch):
    token = issue_token(TokenClaims(id=1, username="alice", email="a@x.com"), secret=SECRET)
    now = time.time()
    monkeypatch.setattr(time, "time", lambda: now + 23 * 60 * 60)
    assert verify_token(token, secret=SECRET) is not None


def test_bad_signature_and_garbage_are_rejected():
    token = issue_token(TokenClaims(id=1, username="alice", email="a@x.com"), secret=SECRET)
    assert verify_token(token, secret="other-secret") is None
    assert verify_token(token[:-2] + "xx", secret=SECRET) is None
    assert verify_token("garbage", secret=SECRET) is None
    assert verify_token("", secret=SECRET) is None
