from __future__ import annotations

import enum
import hashlib
import logging
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import sessionmaker

from credittalk_auth.config import settings
from credittalk_auth.database import storage_scope
from credittalk_auth.errors import ConflictError, DeliveryError, ValidationError
from credittalk_auth.models.verification import PhoneVerificationEntry
from credittalk_auth.services.sms import SmsSender, build_otp_body, to_e164

if TYPE_CHECKING:
    from credittalk_auth.services.users import ProfileStore

LOGGER = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"\d{10,11}")

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def normalize_phone(phone: Optional[str]) -> str:
    if not isinstance(phone, str):
        raise ValidationError("Enter a valid mobile phone number.")
    cleaned = re.sub(r"[\s-]", "", phone)
    if not PHONE_PATTERN.fullmatch(cleaned):
        raise ValidationError("Enter a valid mobile phone number.")
    return cleaned


def generate_code(length: int = settings.otp_length) -> str:
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def hash_code(code: str) -> str:
    return hashlib.sha256(code.strip().encode("utf-8")).hexdigest()


class VerificationState(enum.Enum):
    PENDING = "pending"
    VALID = "valid"
    EXPIRED = "expired"
    CONSUMED = "consumed"
    NOT_FOUND = "not_found"


def evaluate(entry: Optional[PhoneVerificationEntry], now: datetime) -> VerificationState:
    if entry is None:
        return VerificationState.NOT_FOUND
    if now > as_utc(entry.expires_at):
        return VerificationState.EXPIRED
    if entry.used_at is not None:
        return VerificationState.CONSUMED
    return VerificationState.VALID


@dataclass(frozen=True)
class IssuedCode:
    phone: str
    expires_at: datetime


class VerificationStore:
    def __init__(self, sessions: sessionmaker) -> None:
        self._sessions = sessions

    def replace(
        self, phone: str, hashed_otp: str, expires_at: datetime, now: datetime
    ) -> PhoneVerificationEntry:
        with storage_scope(self._sessions, "store verification code") as session:
            session.execute(
                delete(PhoneVerificationEntry).where(
                    PhoneVerificationEntry.phone == phone
                )
            )
            entry = PhoneVerificationEntry(
                phone=phone,
                hashed_otp=hashed_otp,
                expires_at=expires_at,
                used_at=None,
                created_at=now,
            )
            session.add(entry)
            session.flush()
            return entry

    def find(self, phone: str, hashed_otp: str) -> Optional[PhoneVerificationEntry]:
        with storage_scope(self._sessions, "look up verification code") as session:
            return (
                session.execute(
                    select(PhoneVerificationEntry)
                    .where(
                        PhoneVerificationEntry.phone == phone,
                        PhoneVerificationEntry.hashed_otp == hashed_otp,
                    )
                    .order_by(PhoneVerificationEntry.created_at.desc())
                )
                .scalars()
                .first()
            )

    def list_for_phone(self, phone: str) -> list[PhoneVerificationEntry]:
        with storage_scope(self._sessions, "list verification codes") as session:
            result = session.execute(
                select(PhoneVerificationEntry).where(
                    PhoneVerificationEntry.phone == phone
                )
            )
            return list(result.scalars().all())

    def delete(self, entry_id: int) -> None:
        with storage_scope(self._sessions, "delete verification code") as session:
            session.execute(
                delete(PhoneVerificationEntry).where(
                    PhoneVerificationEntry.id == entry_id
                )
            )

    def claim(self, entry_id: int, now: datetime) -> bool:
        """Set used_at only if it is still unset. False means someone beat us."""
        with storage_scope(self._sessions, "consume verification code") as session:
            result = session.execute(
                update(PhoneVerificationEntry)
                .where(
                    PhoneVerificationEntry.id == entry_id,
                    PhoneVerificationEntry.used_at.is_(None),
                )
                .values(used_at=now)
            )
            return result.rowcount > 0

    def release(self, entry_id: int) -> None:
        with storage_scope(self._sessions, "release verification code") as session:
            session.execute(
                update(PhoneVerificationEntry)
                .where(PhoneVerificationEntry.id == entry_id)
                .values(used_at=None)
            )

    def purge_expired(self, now: datetime) -> int:
        with storage_scope(self._sessions, "purge verification codes") as session:
            result = session.execute(
                delete(PhoneVerificationEntry).where(
                    PhoneVerificationEntry.expires_at < now
                )
            )
            return result.rowcount


class OtpIssuer:
    def __init__(
        self,
        verifications: VerificationStore,
        profiles: ProfileStore,
        sms: SmsSender,
        clock: Clock = utcnow,
        ttl_seconds: int = settings.otp_ttl_seconds,
        country_code: str = settings.phone_country_code,
    ) -> None:
        self._verifications = verifications
        self._profiles = profiles
        self._sms = sms
        self._clock = clock
        self._ttl_seconds = ttl_seconds
        self._country_code = country_code

    def issue(self, phone: str) -> IssuedCode:
        normalized = normalize_phone(phone)
        if self._profiles.exists_by_phone(normalized):
            LOGGER.warning("Verification requested for registered phone=%s", normalized)
            raise ConflictError("This phone number is already registered.")

        now = self._clock()
        code = generate_code()
        expires_at = now + timedelta(seconds=self._ttl_seconds)
        self._verifications.purge_expired(now)
        self._verifications.replace(normalized, hash_code(code), expires_at, now)
        LOGGER.info("Issued verification code phone=%s expires_at=%s", normalized, expires_at)

        # The stored record stays pending if delivery fails; a retry replaces it.
        try:
            self._sms.send(to_e164(normalized, self._country_code), build_otp_body(code))
        except DeliveryError:
            LOGGER.error("Verification SMS delivery failed phone=%s", normalized)
            raise
        return IssuedCode(phone=normalized, expires_at=expires_at)
