"""
Identity and permission primitives.

- ``resolve_credential`` turns a raw ``Authorization`` header value into an
  ``IdentityClaim`` (subject id + role).  It is pure: the HTTP layer hands
  it the header string, nothing is read from ambient request state.
- ``authorize`` is the single ownership-or-admin policy applied before
  every mutation.  It is never cached; callers evaluate it per attempt.
- Token issuing and password hashing live here too because they share the
  same settings, but they are only used at the signup/login boundary.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from postapi.config import settings
from postapi.exceptions import InvalidCredentialError
from postapi.models import ROLE_ADMIN

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


@dataclass(frozen=True)
class IdentityClaim:
    subject_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


# ---------------------------------------------------------------------------
# Credential resolution
# ---------------------------------------------------------------------------

def _strip_scheme(raw: str) -> str:
    value = raw.strip()
    scheme, _, rest = value.partition(" ")
    if scheme.lower() == BEARER_SCHEME:
        return rest.strip()
    return value


def resolve_credential(raw: str | None) -> IdentityClaim:
    """
    Decode *raw* (``"Bearer <jwt>"`` or a bare token) into an IdentityClaim.

    Signature, expiry, issuer and audience are checked as part of the
    single decode call.  Raises ``InvalidCredentialError`` on any failure,
    including a missing ``sub``/``role`` claim or a non-integer subject.
    """
    if not raw:
        raise InvalidCredentialError("Missing bearer credential")

    token = _strip_scheme(raw)
    if not token:
        raise InvalidCredentialError("Missing bearer credential")

    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
    except JWTError as exc:
        logger.info("Rejected bearer credential: %s", exc)
        raise InvalidCredentialError() from exc

    subject = payload.get("sub")
    role = payload.get("role")
    if subject is None or not isinstance(role, str):
        raise InvalidCredentialError("Credential is missing a required claim")

    try:
        subject_id = int(subject)
    except (TypeError, ValueError) as exc:
        raise InvalidCredentialError("Credential subject is not a user id") from exc

    return IdentityClaim(subject_id=subject_id, role=role)


# ---------------------------------------------------------------------------
# Authorization policy
# ---------------------------------------------------------------------------

def authorize(claim: IdentityClaim, resource_owner_id: int | None) -> bool:
    """Admins may act on anything; everyone else only on what they own."""
    if claim.is_admin:
        return True
    return resource_owner_id is not None and claim.subject_id == resource_owner_id


# ---------------------------------------------------------------------------
# Token issuing / password hashing (signup + login boundary)
# ---------------------------------------------------------------------------

def create_access_token(
    user_id: int,
    role: str,
    username: str | None = None,
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    expires = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_TTL_MINUTES))
    claims = {
        "sub": str(user_id),
        "role": role,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": now,
        "exp": expires,
    }
    if username is not None:
        claims["name"] = username
    if email is not None:
        claims["email"] = email
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)
