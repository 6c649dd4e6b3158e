"""Verify a phone code and create the account it unlocks.

An account is an identity (credentials) plus a profile row pointing at it.
The two writes are not atomic, so a failed profile insert deletes the
identity again before the original error is surfaced.

The verification record is consumed with a conditional update before any
account write happens. Two requests racing with the same code therefore
cannot both create accounts: the loser sees AlreadyUsedError. If account
creation fails after the claim, the claim is released so the user can
retry with the same code while it is still within its window.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields

from credittalk_auth.config import settings
from credittalk_auth.errors import (
    AlreadyUsedError,
    ExpiredCodeError,
    InvalidCodeError,
    ServiceError,
    StorageError,
    ValidationError,
)
from credittalk_auth.services.identity import IdentityStore
from credittalk_auth.services.otp import (
    Clock,
    VerificationState,
    VerificationStore,
    evaluate,
    hash_code,
    normalize_phone,
    utcnow,
)
from credittalk_auth.services.sms import to_e164
from credittalk_auth.services.users import ProfileStore

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignupData:
    email: str
    password: str
    name: str
    nickname: str
    phone_number: str
    job_type: str
    otp: str

    def require_all(self) -> None:
        for field in fields(self):
            value = getattr(self, field.name)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError("All fields are required.")


@dataclass(frozen=True)
class SignupResult:
    identity_id: str
    profile_id: int


class SignupCommitter:
    def __init__(
        self,
        verifications: VerificationStore,
        identities: IdentityStore,
        profiles: ProfileStore,
        clock: Clock = utcnow,
        country_code: str = settings.phone_country_code,
    ) -> None:
        self._verifications = verifications
        self._identities = identities
        self._profiles = profiles
        self._clock = clock
        self._country_code = country_code

    def commit(self, data: SignupData) -> SignupResult:
        data.require_all()
        phone = normalize_phone(data.phone_number)
        entry_id = self._verify(phone, data.otp)

        try:
            identity_id = self._identities.create_identity(
                email=data.email,
                password=data.password,
                phone=to_e164(phone, self._country_code),
                confirmed=True,
            )
        except ServiceError:
            self._release(entry_id)
            raise

        try:
            profile_id = self._profiles.insert_profile(
                auth_user_id=identity_id,
                name=data.name.strip(),
                nickname=data.nickname.strip(),
                phone_number=phone,
                job_type=data.job_type.strip(),
            )
        except ServiceError as exc:
            self._compensate(identity_id, exc)
            self._release(entry_id)
            raise

        LOGGER.info("Signup completed identity=%s profile=%s", identity_id, profile_id)
        return SignupResult(identity_id=identity_id, profile_id=profile_id)

    def _verify(self, phone: str, otp: str) -> int:
        now = self._clock()
        entry = self._verifications.find(phone, hash_code(otp))
        state = evaluate(entry, now)
        if state is VerificationState.NOT_FOUND:
            raise InvalidCodeError()
        if state is VerificationState.EXPIRED:
            LOGGER.info("Expired verification code phone=%s", phone)
            self._verifications.delete(entry.id)
            raise ExpiredCodeError()
        if state is VerificationState.CONSUMED:
            LOGGER.warning("Replayed verification code phone=%s", phone)
            raise AlreadyUsedError()
        if not self._verifications.claim(entry.id, now):
            LOGGER.warning("Verification code consumed concurrently phone=%s", phone)
            raise AlreadyUsedError()
        return entry.id

    def _compensate(self, identity_id: str, cause: ServiceError) -> None:
        LOGGER.error(
            "Profile insert failed for identity=%s, deleting identity: %s",
            identity_id,
            cause,
        )
        try:
            self._identities.delete_identity(identity_id)
        except StorageError as exc:
            LOGGER.error(
                "Could not delete orphaned identity=%s after profile failure (%s): %s",
                identity_id,
                cause,
                exc,
            )

    def _release(self, entry_id: int) -> None:
        try:
            self._verifications.release(entry_id)
        except StorageError as exc:
            LOGGER.error("Could not release verification id=%s: %s", entry_id, exc)
