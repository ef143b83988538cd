from datetime import timedelta
from functools import lru_cache

from fastapi import Request, Depends
from sqlalchemy.orm import Session

from .config import settings
from .errors import ExpiredToken, Unauthorized
from .security import PasswordHasher, TokenSigner, generate_otp
from ..crud import SqlUserRepository
from ..database import get_db
from ..mailer import EmailNotifier, Notifier
from ..services.lifecycle import CredentialLifecycleManager

BEARER_HEADERS = {"WWW-Authenticate": "Bearer"}


@lru_cache
def get_token_signer() -> TokenSigner:
    return TokenSigner(
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher()


def get_notifier() -> Notifier:
    return EmailNotifier(
        server=settings.SMTP_SERVER,
        port=settings.SMTP_PORT,
        user=settings.SMTP_USER,
        password=settings.SMTP_PASSWORD,
        timeout=settings.NOTIFIER_TIMEOUT_SECONDS,
    )


def get_lifecycle_manager(
        db: Session = Depends(get_db),
        notifier: Notifier = Depends(get_notifier),
        hasher: PasswordHasher = Depends(get_password_hasher),
        signer: TokenSigner = Depends(get_token_signer),
) -> CredentialLifecycleManager:
    return CredentialLifecycleManager(
        users=SqlUserRepository(db),
        notifier=notifier,
        hasher=hasher,
        signer=signer,
        otp_generator=lambda: generate_otp(settings.OTP_LENGTH),
        otp_ttl=timedelta(minutes=settings.OTP_TTL_MINUTES),
        store_timeout=settings.STORE_TIMEOUT_SECONDS,
        notifier_timeout=settings.NOTIFIER_TIMEOUT_SECONDS,
    )


def get_token_from_header(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if auth_header:
        scheme, _, token = auth_header.partition(" ")
        if scheme == "Bearer" and token.strip():
            return token.strip()

    raise Unauthorized("Authorization token not found", headers=BEARER_HEADERS)


async def require_bearer_token(
        request: Request,
        token: str = Depends(get_token_from_header),
        manager: CredentialLifecycleManager = Depends(get_lifecycle_manager),
) -> int:
    try:
        user_id = manager.verify_token(token)
    except Unauthorized as exc:
        if isinstance(exc.__cause__, ExpiredToken):
            message = "Your token has expired. Please log in again to get a new token."
        else:
            message = "Invalid token. Please log in again to get a new token."
        raise Unauthorized(message, headers=BEARER_HEADERS) from exc

    request.state.user_id = user_id
    return user_id
