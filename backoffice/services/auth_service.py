"""Password hashing and bearer tokens for back-office staff"""

from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

import bcrypt
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from backoffice.config import settings
from backoffice.models import User, UserRole

TOKEN_ISSUER = "backoffice-api"
BCRYPT_ROUNDS = 12


class StaffClaims(BaseModel):
    """Identity carried by a bearer token"""
    user_id: UUID
    email: str
    role: UserRole


def _signing_key() -> str:
    return settings.jwt_secret or settings.secret_key


class AuthService:
    """Hashes staff passwords and issues/reads their bearer tokens"""

    @staticmethod
    def hash_password(password: str) -> str:
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
        return hashed.decode("utf-8")

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))

    @staticmethod
    def issue_token(user: User, expires_in: Optional[timedelta] = None) -> str:
        """
        Sign a token for a staff member.

        The token records the user's role at issue time; a later role change
        invalidates it (see ``get_current_user``).

        Args:
            user: Staff member the token identifies
            expires_in: Lifetime, defaults to ``jwt_expiration_hours``

        Returns:
            Encoded JWT
        """
        now = datetime.utcnow()
        lifetime = expires_in or timedelta(hours=settings.jwt_expiration_hours)
        claims = {
            "sub": str(user.id),
            "email": user.email,
            "role": UserRole(user.role).value,
            "iss": TOKEN_ISSUER,
            "iat": now,
            "exp": now + lifetime,
        }
        return jwt.encode(claims, _signing_key(), algorithm=settings.jwt_algorithm)

    @staticmethod
    def read_token(token: str) -> Optional[StaffClaims]:
        """
        Verify signature, expiry and issuer, then parse the staff claims.

        Returns:
            The claims, or None when the token is unusable
        """
        try:
            payload = jwt.decode(
                token,
                _signing_key(),
                algorithms=[settings.jwt_algorithm],
                issuer=TOKEN_ISSUER,
            )
            return StaffClaims(
                user_id=payload.get("sub"),
                email=payload.get("email"),
                role=payload.get("role"),
            )
        except (JWTError, ValidationError):
            return None
