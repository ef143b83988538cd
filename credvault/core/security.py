from __future__ import annotations
import secrets
import string
from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError, ExpiredSignatureError
from pwdlib import PasswordHash
from pwdlib.exceptions import UnknownHashError
from pwdlib.hashers.bcrypt import BcryptHasher

from .errors import InvalidToken, ExpiredToken

BCRYPT_ROUNDS = 12
# bcrypt only reads the first 72 bytes and refuses anything longer
MAX_PASSWORD_BYTES = 72
OTP_LENGTH = 4


class PasswordHasher:
    """Salted one-way hashing; the salt travels inside the bcrypt string."""

    def __init__(self, rounds: int = BCRYPT_ROUNDS):
        self._hash = PasswordHash((BcryptHasher(rounds=rounds),))

    def hash(self, plain_password: str) -> str:
        return self._hash.hash(plain_password)

    def verify(self, plain_password: str, password_hash: str) -> bool:
        try:
            return self._hash.verify(plain_password, password_hash)
        except (UnknownHashError, ValueError):
            return False


def password_too_long(plain_password: str) -> bool:
    return len(plain_password.encode("utf-8")) > MAX_PASSWORD_BYTES


def generate_otp(length: int = OTP_LENGTH) -> str:
    return ''.join(secrets.choice(string.digits) for _ in range(length))


class TokenSigner:
    def __init__(self, secret_key: str, algorithm: str = "HS256",
                 expires_delta: timedelta = timedelta(hours=1)):
        if not secret_key:
            raise ValueError("A signing secret is required")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.expires_delta = expires_delta

    def issue(self, user_id: int) -> str:
        issued_at = datetime.now(timezone.utc)
        to_encode = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + self.expires_delta,
        }
        return jwt.encode(to_encode, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> int:
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as exc:
            raise ExpiredToken("Token has expired") from exc
        except JWTError as exc:
            raise InvalidToken("Token could not be verified") from exc

        subject = payload.get("sub")
        try:
            return int(subject)
        except (TypeError, ValueError) as exc:
            raise InvalidToken("Token subject is missing or malformed") from exc
