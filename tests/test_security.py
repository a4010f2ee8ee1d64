"""
Credential resolution and the ownership-or-admin policy, tested without a
database or HTTP layer.
"""
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from postapi.config import settings
from postapi.exceptions import InvalidCredentialError
from postapi.security import (
    IdentityClaim,
    authorize,
    create_access_token,
    hash_password,
    resolve_credential,
    verify_password,
)


@pytest.fixture(autouse=True)
def setup_db():
    """No tables needed here; shadows the database fixture from conftest."""
    yield


def _encode(claims: dict, secret: str | None = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": now,
        "exp": now + timedelta(minutes=5),
    }
    payload.update(claims)
    return jwt.encode(payload, secret or settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


# ---------------------------------------------------------------------------
# resolve_credential
# ---------------------------------------------------------------------------

def test_resolve_issued_token():
    token = create_access_token(42, "user", username="alice", email="alice@example.com")
    assert resolve_credential(f"Bearer {token}") == IdentityClaim(subject_id=42, role="user")


@pytest.mark.parametrize("template", ["{}", "Bearer {}", "  Bearer   {}  ", "bearer {}", "\t{}\n"])
def test_resolve_strips_scheme_and_whitespace(template):
    token = create_access_token(7, "admin")
    claim = resolve_credential(template.format(token))
    assert claim.subject_id == 7
    assert claim.is_admin


@pytest.mark.parametrize("raw", [None, "", "   ", "Bearer", "Bearer   "])
def test_resolve_missing_credential(raw):
    with pytest.raises(InvalidCredentialError):
        resolve_credential(raw)


@pytest.mark.parametrize("raw", ["Bearer not-a-jwt", "Bearer a.b.c", "Basic dXNlcjpwYXNz"])
def test_resolve_malformed_credential(raw):
    with pytest.raises(InvalidCredentialError):
        resolve_credential(raw)


def test_resolve_rejects_foreign_signature():
    token = _encode({"sub": "1", "role": "admin"}, secret="someone-elses-key")
    with pytest.raises(InvalidCredentialError):
        resolve_credential(f"Bearer {token}")


def test_resolve_rejects_expired_token():
    token = create_access_token(1, "user", expires_delta=timedelta(minutes=-1))
    with pytest.raises(InvalidCredentialError):
        resolve_credential(token)


def test_resolve_requires_subject():
    token = _encode({"role": "user"})
    with pytest.raises(InvalidCredentialError):
        resolve_credential(token)


def test_resolve_requires_role():
    token = _encode({"sub": "3"})
    with pytest.raises(InvalidCredentialError):
        resolve_credential(token)


def test_resolve_rejects_non_integer_subject():
    token = _encode({"sub": "alice", "role": "user"})
    with pytest.raises(InvalidCredentialError):
        resolve_credential(token)


def test_resolve_keeps_role_case():
    token = _encode({"sub": "3", "role": "Admin"})
    claim = resolve_credential(token)
    assert claim.role == "Admin"
    assert not claim.is_admin


# ---------------------------------------------------------------------------
# authorize
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("owner_id", [1, 2, 999, None])
def test_admin_may_act_on_anything(owner_id):
    assert authorize(IdentityClaim(subject_id=1, role="admin"), owner_id) is True


@pytest.mark.parametrize(
    "subject_id,owner_id,expected",
    [
        (1, 1, True),
        (1, 2, False),
        (2, 1, False),
        (5, None, False),
    ],
)
@pytest.mark.parametrize("role", ["user", "Admin", "moderator", ""])
def test_non_admin_may_act_only_on_own(role, subject_id, owner_id, expected):
    assert authorize(IdentityClaim(subject_id=subject_id, role=role), owner_id) is expected


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def test_password_hash_round_trip():
    hashed = hash_password("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)
