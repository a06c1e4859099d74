"""
Token issuance and verification.
"""
from datetime import timedelta

import jwt
import pytest

from userservice.auth import jwt as auth_jwt
from userservice.auth.authorities import AuthoritySet
from userservice.auth.errors import InvalidToken
from userservice.auth.jwt import issue_token, verify_token

AUTHORITIES = AuthoritySet.from_names(roles=["ROLE_USER"], permissions=["USER_READ", "VIEW_DASHBOARD"])


def test_round_trip_preserves_identity_and_authorities():
    token = issue_token(user_id=7, username="alice", email="alice@example.com", authorities=AUTHORITIES)

    data = verify_token(token.access_token)

    assert data.user_id == 7
    assert data.username == "alice"
    assert data.email == "alice@example.com"
    assert data.authorities == AUTHORITIES
    assert data.iat == token.issued_at
    assert data.exp == token.expires_at
    assert token.token_type == "Bearer"


def test_claims_partition_roles_and_permissions():
    token = issue_token(user_id=1, username="bob", email="bob@example.com", authorities=AUTHORITIES)

    claims = jwt.decode(token.access_token, options={"verify_signature": False})

    assert claims["roles"] == ["ROLE_USER"]
    assert claims["permissions"] == ["USER_READ", "VIEW_DASHBOARD"]
    assert claims["sub"] == "1"


def test_default_ttl():
    token = issue_token(user_id=1, username="bob", email="bob@example.com", authorities=AUTHORITIES)
    assert token.expires_at - token.issued_at == auth_jwt.ACCESS_TOKEN_EXPIRE_MINUTES * 60


def test_each_issue_is_a_fresh_token():
    first = issue_token(user_id=1, username="bob", email="bob@example.com", authorities=AUTHORITIES)
    second = issue_token(
        user_id=1, username="bob", email="bob@example.com", authorities=AUTHORITIES,
        expires_delta=timedelta(minutes=5),
    )
    assert first.access_token != second.access_token


def test_expired_token_is_rejected():
    token = issue_token(
        user_id=1, username="bob", email="bob@example.com", authorities=AUTHORITIES,
        expires_delta=timedelta(seconds=-10),
    )
    with pytest.raises(InvalidToken):
        verify_token(token.access_token)


def test_tampered_claims_are_rejected():
    token = issue_token(user_id=1, username="bob", email="bob@example.com", authorities=AUTHORITIES)
    claims = jwt.decode(token.access_token, options={"verify_signature": False})
    claims["permissions"].append("USER_DELETE")
    forged = jwt.encode(claims, "some-other-secret", algorithm="HS256")

    with pytest.raises(InvalidToken):
        verify_token(forged)


def test_modified_payload_segment_is_rejected():
    token = issue_token(user_id=1, username="bob", email="bob@example.com", authorities=AUTHORITIES)
    header, payload, signature = token.access_token.split(".")
    other = issue_token(user_id=2, username="eve", email="eve@example.com", authorities=AUTHORITIES)
    other_payload = other.access_token.split(".")[1]

    with pytest.raises(InvalidToken):
        verify_token(".".join([header, other_payload, signature]))


@pytest.mark.parametrize("value", ["", "not-a-token", "a.b.c"])
def test_garbage_is_rejected(value):
    with pytest.raises(InvalidToken):
        verify_token(value)


def test_missing_claims_are_rejected():
    forged = jwt.encode({"sub": "1", "iss": auth_jwt.ISSUER}, auth_jwt.SECRET_KEY, algorithm=auth_jwt.ALGORITHM)
    with pytest.raises(InvalidToken):
        verify_token(forged)


@pytest.mark.parametrize("claim,value", [
    ("roles", ["ROLE_ROOT"]),
    ("permissions", ["USER_PURGE"]),
])
def test_names_outside_catalog_are_rejected(claim, value):
    token = issue_token(user_id=1, username="bob", email="bob@example.com", authorities=AUTHORITIES)
    claims = jwt.decode(token.access_token, options={"verify_signature": False})
    claims[claim] = value
    resigned = jwt.encode(claims, auth_jwt.SECRET_KEY, algorithm=auth_jwt.ALGORITHM)

    with pytest.raises(InvalidToken):
        verify_token(resigned)
