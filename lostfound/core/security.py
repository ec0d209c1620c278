"""
Lost & Found API — Password hashing and session token codec

Session tokens are self-contained HS256 JWTs: validation never touches the
database, so a role change or account deletion only takes effect once the
holder's token expires (at most TOKEN_LIFETIME later).
"""
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from jose.exceptions import JWTClaimsError
from passlib.context import CryptContext

from lostfound.models.enums import Role

TOKEN_LIFETIME = timedelta(hours=24)


# ─── Password Hashing ─────────────────────────────────────────────────────────

class PasswordHasher:
    def __init__(self, rounds: int = 12):
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__default_rounds=rounds)

    def hash(self, plain: str) -> str:
        return self._context.hash(plain)

    def verify(self, plain: str, hashed: str) -> bool:
        try:
            return self._context.verify(plain, hashed)
        except (ValueError, TypeError):
            # Unknown or corrupt hash format in storage.
            return False


# ─── Session Tokens ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Principal:
    """The authenticated identity attached to a request."""
    id: int
    username: str
    role: Role


class TokenError(Exception):
    """Base exception for token validation failures."""


class MalformedToken(TokenError):
    """Token cannot be structurally decoded or lacks required claims."""


class BadSignature(TokenError):
    """Token signature does not verify against the server secret."""


class TokenExpired(TokenError):
    """Token was valid but its lifetime has passed."""


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class TokenCodec:
    """Issues and validates signed bearer tokens for a Principal."""

    def __init__(self, secret: str, algorithm: str = "HS256", clock: Callable[[], datetime] = _utc_now):
        if not secret:
            raise ValueError("A signing secret is required")
        self._secret = secret
        self._algorithm = algorithm
        self._clock = clock

    @property
    def lifetime_seconds(self) -> int:
        return int(TOKEN_LIFETIME.total_seconds())

    def issue(self, principal: Principal) -> str:
        # Role(...) rejects anything outside the three known roles.
        role = Role(principal.role)
        issued_at = self._clock()
        claims = {
            "sub": str(principal.id),
            "username": principal.username,
            "role": role.value,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + TOKEN_LIFETIME).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def validate(self, token: str) -> Principal:
        """
        Verify a token and return the principal it carries.

        Raises:
            MalformedToken: token is not a decodable JWT or its claims are invalid
            BadSignature: signature (or algorithm) does not match
            TokenExpired: current time is past the embedded expiry
        """
        try:
            jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise MalformedToken("Token could not be decoded") from exc

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTClaimsError as exc:
            raise MalformedToken("Token claims are invalid") from exc
        except JWTError as exc:
            raise BadSignature("Token signature is invalid") from exc

        principal, expires_at = self._parse_claims(claims)
        if self._clock().timestamp() > expires_at:
            raise TokenExpired("Token has expired")
        return principal

    @staticmethod
    def _parse_claims(claims: dict[str, Any]) -> tuple[Principal, int]:
        expires_at = claims.get("exp")
        username = claims.get("username")
        if not isinstance(expires_at, int) or not isinstance(username, str):
            raise MalformedToken("Token is missing required claims")
        try:
            principal = Principal(
                id=int(claims["sub"]),
                username=username,
                role=Role(claims["role"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedToken("Token is missing required claims") from exc
        return principal, expires_at
