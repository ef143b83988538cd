# Standard library imports
import asyncio
import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Tuple

# External package imports
from sqlalchemy.exc import SQLAlchemyError

# Local application imports
from ..core.errors import BadRequest, Conflict, NotFound, TokenError, Unauthorized, Unavailable
from ..core.security import (
    MAX_PASSWORD_BYTES, PasswordHasher, TokenSigner, generate_otp, password_too_long,
)
from ..crud import UserRepository
from ..mailer import Notifier, PURPOSE_RESET, PURPOSE_VERIFY
from ..models import User

logger = logging.getLogger(__name__)

OTP_TTL = timedelta(minutes=10)
MAX_OTP_ATTEMPTS = 20


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(moment: datetime) -> datetime:
    # sqlite hands back naive datetimes
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class CredentialLifecycleManager:
    """Signup, OTP verification, login and password recovery for users.

    Store, notifier and hasher calls run in worker threads so a slow
    database or SMTP server does not stall other requests; store and
    notifier calls are additionally bounded by a timeout.
    """

    def __init__(
        self,
        users: UserRepository,
        notifier: Notifier,
        hasher: PasswordHasher,
        signer: TokenSigner,
        otp_generator: Callable[[], str] = generate_otp,
        otp_ttl: timedelta = OTP_TTL,
        store_timeout: float = 5.0,
        notifier_timeout: float = 15.0,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.users = users
        self.notifier = notifier
        self.hasher = hasher
        self.signer = signer
        self.otp_generator = otp_generator
        self.otp_ttl = otp_ttl
        self.store_timeout = store_timeout
        self.notifier_timeout = notifier_timeout
        self.clock = clock
        # set once a store call is abandoned mid-flight; its session may still be busy
        self._store_abandoned = False

    async def _store(self, operation: str, func, *args):
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), self.store_timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Credential store timed out during %s", operation)
            self._store_abandoned = True
            raise Unavailable("Credential store did not respond in time") from exc
        except SQLAlchemyError as exc:
            logger.error("Credential store failed during %s: %s", operation, exc)
            raise Unavailable("Credential store unavailable") from exc

    def _otp_expired(self, user: User) -> bool:
        if user.otp_issued_at is None:
            return True
        return self.clock() > _as_utc(user.otp_issued_at) + self.otp_ttl

    async def _issue_otp(self, user: User) -> str:
        live_since = self.clock() - self.otp_ttl
        for _ in range(MAX_OTP_ATTEMPTS):
            code = self.otp_generator()
            if not await self._store("otp lookup", self.users.otp_in_use, code, live_since, user.id):
                break
        else:
            raise Unavailable("Could not allocate a one-time passcode")

        user.otp_code = code
        user.otp_issued_at = self.clock()
        await self._store("otp save", self.users.save, user)
        logger.info("Issued OTP for user %s", user.id)
        return code

    async def _find_otp_holder(self, code: str, email: Optional[str]) -> Optional[User]:
        if email is None:
            return await self._store("otp lookup", self.users.get_by_otp, code)

        user = await self._store("user lookup", self.users.get_by_email, email.strip().lower())
        if user is None or user.otp_code is None:
            return user
        if not hmac.compare_digest(user.otp_code.encode(), code.encode()):
            return None
        return user

    async def sign_up(self, full_name: Optional[str], email: str, password: str) -> Tuple[User, str]:
        """
        Register a new unverified user and send the verification code.

        Args:
            full_name: Display name, may be empty
            email: Contact address, must be unique
            password: Plaintext password, hashed before storage

        Returns:
            The created user (carrying its pending ``otp_code``) and a bearer token

        Raises:
            BadRequest: If email or password is missing, or the password is too long
            Conflict: If the email is already registered
        """
        email = (email or "").strip().lower()
        if not email or not password:
            raise BadRequest("Email and password are required")
        if password_too_long(password):
            raise BadRequest(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")

        existing = await self._store("user lookup", self.users.get_by_email, email)
        if existing is not None:
            raise Conflict("User with this email already exists")

        password_hash = await asyncio.to_thread(self.hasher.hash, password)
        user = await self._store("user create", self.users.create, full_name, email, password_hash)
        token = self.signer.issue(user.id)

        try:
            otp = await self._issue_otp(user)
            await self.send_otp(user, otp, PURPOSE_VERIFY)
        except Exception:
            await self._compensate_signup(user.id)
            raise

        logger.info("Signed up user %s", user.id)
        return user, token

    async def _compensate_signup(self, user_id: int) -> None:
        logger.warning("Rolling back signup of user %s", user_id)
        users = self.users.fresh() if self._store_abandoned else self.users
        try:
            await self._store("user delete", users.delete, user_id)
        except Exception:
            logger.exception("Could not roll back signup of user %s", user_id)
        finally:
            if users is not self.users:
                users.close()

    async def send_otp(self, user: User, code: str, purpose: str) -> None:
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self.notifier.send_otp, user.email, user.full_name, code, purpose),
                self.notifier_timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.error("Notifier timed out delivering %s code to user %s", purpose, user.id)
            raise Unavailable("Failed to send email") from exc

    async def generate_and_save_otp(self, email: str) -> str:
        user = await self._store("user lookup", self.users.get_by_email, email.strip().lower())
        if user is None:
            raise NotFound(f"User {email} not found")
        return await self._issue_otp(user)

    async def verify_otp(self, code: str, email: Optional[str] = None) -> User:
        """
        Consume a verification code and mark its holder verified.

        When ``email`` is given the user is resolved by email and the code
        compared against theirs; otherwise the user holding the code is used.

        Raises:
            Unauthorized: If the code is unknown, expired, or the user is already verified
        """
        user = await self._find_otp_holder(code, email)
        if user is None:
            raise Unauthorized("Invalid OTP or OTP has expired")

        if user.otp_code is None:
            if user.verified:
                raise Unauthorized("User is already verified")
            raise Unauthorized("Invalid OTP or OTP has expired")

        if self._otp_expired(user):
            raise Unauthorized("OTP has expired")

        if user.verified:
            raise Unauthorized("User is already verified")

        user.verified = True
        user.otp_code = None
        user.otp_issued_at = None
        user = await self._store("user save", self.users.save, user)
        logger.info("Verified user %s", user.id)
        return user

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        user = await self._store("user lookup", self.users.get_by_email, email.strip().lower())
        if user is None:
            raise NotFound("User does not exist")

        valid = await asyncio.to_thread(self.hasher.verify, password, user.password_hash)
        if not valid:
            logger.info("Rejected login for user %s", user.id)
            raise Unauthorized("Incorrect email or password.")

        return user, self.signer.issue(user.id)

    async def forgot_password(self, email: str) -> User:
        user = await self._store("user lookup", self.users.get_by_email, email.strip().lower())
        if user is None:
            raise NotFound("There is no user with this email address")
        await self._issue_otp(user)
        return user

    async def reset_password(
        self,
        code: str,
        new_password: str,
        confirm_password: str,
        email: Optional[str] = None,
    ) -> None:
        if new_password != confirm_password:
            raise BadRequest("Passwords do not match")
        if password_too_long(new_password):
            raise BadRequest(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")

        user = await self._find_otp_holder(code, email)
        if user is None or user.otp_code is None:
            raise Unauthorized("Invalid OTP")
        if self._otp_expired(user):
            raise Unauthorized("OTP has expired")

        user.password_hash = await asyncio.to_thread(self.hasher.hash, new_password)
        user.otp_code = None
        user.otp_issued_at = None
        await self._store("user save", self.users.save, user)
        logger.info("Reset password for user %s", user.id)

    def verify_token(self, token: str) -> int:
        try:
            return self.signer.verify(token)
        except TokenError as exc:
            raise Unauthorized("Invalid or expired token") from exc

    async def delete_user(self, user_id: int) -> None:
        await self._store("user delete", self.users.delete, user_id)
