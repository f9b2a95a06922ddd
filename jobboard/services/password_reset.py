"""One-time codes for recruiter password resets."""
import secrets
import time
from typing import Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.errors import NotFoundError, ValidationError
from jobboard.models.company import Company
from jobboard.services.otp_store import ExpiringStore


def generate_code() -> str:
    """Random 6-digit code."""
    return str(secrets.randbelow(900000) + 100000)


class PasswordResetService:

    def __init__(self, store: ExpiringStore, ttl_seconds: int = 600, max_attempts: int = 3,
                 clock: Callable[[], float] = time.time):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.max_attempts = max_attempts
        self.clock = clock

    @staticmethod
    def _key(email: str) -> str:
        return f"otp:{email.strip().lower()}"

    @staticmethod
    def _attempts_key(email: str) -> str:
        return f"otp-attempts:{email.strip().lower()}"

    async def issue(self, email: str) -> str:
        """Store a fresh code for `email`, replacing any earlier one."""
        code = generate_code()
        await self.store.set(
            self._key(email),
            {"otp": code, "expires_at": self.clock() + self.ttl_seconds},
            self.ttl_seconds,
        )
        await self.store.delete(self._attempts_key(email))
        return code

    async def verify(self, email: str, code: str) -> None:
        """Consume the code or raise ValidationError."""
        key = self._key(email)
        attempts_key = self._attempts_key(email)
        entry = await self.store.get(key)
        if entry is None:
            raise ValidationError("No OTP request found. Please request a new OTP")

        remaining = entry["expires_at"] - self.clock()
        if remaining <= 0:
            await self._discard(key, attempts_key)
            raise ValidationError("OTP has expired. Please request a new one")

        # The attempt is counted before the comparison; the counter outlives
        # a lockout until the next issue()
        attempts = await self.store.incr(attempts_key, int(remaining) + 1)
        if attempts > self.max_attempts:
            await self.store.delete(key)
            raise ValidationError("Too many invalid attempts. Please request a new OTP")

        if not secrets.compare_digest(str(entry["otp"]), str(code)):
            raise ValidationError("Invalid OTP")

        await self._discard(key, attempts_key)

    async def _discard(self, key: str, attempts_key: str) -> None:
        await self.store.delete(key)
        await self.store.delete(attempts_key)


async def find_company_by_email(db: AsyncSession, email: str) -> Company:
    result = await db.execute(select(Company).where(Company.email == email))
    company = result.scalar_one_or_none()
    if company is None:
        raise NotFoundError("No recruiter account found with this email")
    return company


async def reset_password(
    db: AsyncSession, service: PasswordResetService, email: str, code: str, new_password: str
) -> Company:
    if not new_password or len(new_password) < 6:
        raise ValidationError("Password must be at least 6 characters")
    await service.verify(email, code)
    company = await find_company_by_email(db, email)
    company.password = Company.hash_password(new_password)
    await db.commit()
    return company
