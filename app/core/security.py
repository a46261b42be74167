"""Security utilities: password hashing and the bearer token codec."""

from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError, model_validator

from app.core.config import get_settings
from app.core.exceptions import TokenExpired, TokenMalformed, TokenSignatureInvalid
from app.core.permissions import UserRole

settings = get_settings()

# ── Password hashing (Argon2) ────────────────────────────────

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def dummy_verify_password() -> None:
    """Spend the same time as a real verification when there is no user."""
    pwd_context.dummy_verify()


# ── Token claims ──────────────────────────────────────────────

class TokenClaims(BaseModel):
    """Structure every verified token payload must match.

    ``org`` must be present in the payload (it may be null) and may only be
    null for a super admin.
    """

    sub: str
    email: str
    role: UserRole
    org: str | None
    perms: list[str]
    exp: int

    @model_validator(mode="after")
    def _require_tenant_binding(self) -> "TokenClaims":
        if self.role != UserRole.SUPER_ADMIN and not self.org:
            raise ValueError("non super-admin tokens must carry an organization")
        return self


# ── JWT ───────────────────────────────────────────────────────

def _get_secret() -> str:
    if not settings.jwt_secret_key:
        raise RuntimeError("JWT_SECRET_KEY is not configured")
    return settings.jwt_secret_key


def issue_token(
    subject: str,
    email: str,
    role: str,
    organization_id: str | None,
    permissions: list[str],
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta if expires_delta is not None
        else timedelta(minutes=settings.jwt_expire_minutes)
    )
    payload = {
        "sub": subject,
        "email": email,
        "role": str(role),
        "org": organization_id,
        "perms": list(permissions),
        "exp": expire,
    }
    return jwt.encode(payload, _get_secret(), algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> TokenClaims:
    """Verify signature and expiry, then validate the claim structure.

    Raises TokenMalformed, TokenSignatureInvalid or TokenExpired. The HMAC
    comparison inside python-jose is constant time.
    """
    try:
        jwt.get_unverified_header(token)
        jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise TokenMalformed() from exc

    try:
        payload = jwt.decode(token, _get_secret(), algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as exc:
        raise TokenExpired() from exc
    except JWTClaimsError as exc:
        raise TokenMalformed() from exc
    except JWTError as exc:
        raise TokenSignatureInvalid() from exc

    try:
        return TokenClaims.model_validate(payload)
    except ValidationError as exc:
        raise TokenMalformed() from exc
