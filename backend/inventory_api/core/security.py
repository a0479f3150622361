from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from passlib.context import CryptContext

from inventory_api.core.config import Settings
from inventory_api.core.errors import ExpiredToken, InvalidToken


class CredentialService:
    """Password hashing and verification."""

    def __init__(self, rounds: int = 12):
        self.context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash_password(self, password: str) -> str:
        return self.context.hash(password)

    def verify_password(self, password: str, hashed_password: str) -> bool:
        return self.context.verify(password, hashed_password)


class TokenService:
    """Issues and validates bearer tokens carrying a subject id and role."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expires_minutes: int = 60 * 24 * 7):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_minutes = expires_minutes

    def create_token(self, subject: str, role: str, token_type: str = "access") -> str:
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": subject,
            "role": role,
            "type": token_type,
            "exp": now + timedelta(minutes=self.expires_minutes),
            "iat": now,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> dict[str, Any]:
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredToken() from exc
        except jwt.PyJWTError as exc:
            raise InvalidToken() from exc


def build_credential_service(settings: Settings) -> CredentialService:
    return CredentialService(rounds=settings.bcrypt_rounds)


def build_token_service(settings: Settings) -> TokenService:
    return TokenService(
        secret_key=settings.secret_key,
        algorithm=settings.jwt_algorithm,
        expires_minutes=settings.access_token_expire_minutes,
    )
