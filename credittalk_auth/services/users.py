from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from credittalk_auth.database import storage_scope
from credittalk_auth.errors import ConflictError, NotFoundError, ValidationError
from credittalk_auth.models.profile import ProfileEntry
from credittalk_auth.services.identity import IdentityStore, normalize_email

LOGGER = logging.getLogger(__name__)

MIN_NICKNAME_LENGTH = 2


def mask_email(email: str) -> str:
    if not email:
        return ""
    local_part, _, domain = email.partition("@")
    if len(local_part) <= 3:
        return f"{local_part[:1]}**@{domain}"
    return f"{local_part[:3]}{'*' * (len(local_part) - 3)}@{domain}"


class ProfileStore:
    def __init__(self, sessions: sessionmaker) -> None:
        self._sessions = sessions

    def insert_profile(
        self,
        auth_user_id: str,
        name: str,
        nickname: str,
        phone_number: str,
        job_type: str,
    ) -> int:
        with storage_scope(self._sessions, "create profile") as session:
            entry = ProfileEntry(
                auth_user_id=auth_user_id,
                name=name,
                nickname=nickname,
                phone_number=phone_number,
                job_type=job_type,
                created_at=datetime.now(timezone.utc),
            )
            session.add(entry)
            try:
                session.flush()
            except IntegrityError as exc:
                raise ConflictError(
                    "Nickname or phone number is already registered."
                ) from exc
            return entry.id

    def exists_by_phone(self, phone_number: str) -> bool:
        with storage_scope(self._sessions, "check phone number") as session:
            entry = session.execute(
                select(ProfileEntry.id).where(ProfileEntry.phone_number == phone_number)
            ).first()
            return entry is not None

    def get_by_auth_user_id(self, auth_user_id: str) -> Optional[ProfileEntry]:
        with storage_scope(self._sessions, "load profile") as session:
            return session.execute(
                select(ProfileEntry).where(ProfileEntry.auth_user_id == auth_user_id)
            ).scalar_one_or_none()

    def nickname_exists(self, nickname: str) -> bool:
        with storage_scope(self._sessions, "check nickname") as session:
            entry = session.execute(
                select(ProfileEntry.id).where(ProfileEntry.nickname == nickname.strip())
            ).first()
            return entry is not None

    def find_by_name_and_phone(
        self, name: str, phone_number: str
    ) -> Optional[ProfileEntry]:
        with storage_scope(self._sessions, "look up profile") as session:
            return (
                session.execute(
                    select(ProfileEntry).where(
                        ProfileEntry.name == name.strip(),
                        ProfileEntry.phone_number == phone_number.strip(),
                    )
                )
                .scalars()
                .first()
            )


class AccountLookup:
    """Read-only checks the signup screens make before and after registering."""

    def __init__(self, identities: IdentityStore, profiles: ProfileStore) -> None:
        self._identities = identities
        self._profiles = profiles

    def email_available(self, email: Optional[str]) -> bool:
        if not isinstance(email, str) or not email.strip():
            raise ValidationError("A valid email address is required.")
        return not self._identities.email_exists(normalize_email(email))

    def nickname_available(self, nickname: Optional[str]) -> bool:
        if not isinstance(nickname, str) or len(nickname.strip()) < MIN_NICKNAME_LENGTH:
            raise ValidationError(
                f"A valid nickname is required ({MIN_NICKNAME_LENGTH} characters or more)."
            )
        return not self._profiles.nickname_exists(nickname)

    def find_masked_email(
        self, name: Optional[str], phone_number: Optional[str]
    ) -> str:
        if not isinstance(name, str) or not isinstance(phone_number, str):
            raise ValidationError("Both name and phone number are required.")
        if not name.strip() or not phone_number.strip():
            raise ValidationError("Both name and phone number are required.")
        profile = self._profiles.find_by_name_and_phone(name, phone_number)
        if profile is None:
            LOGGER.info("No profile matches the submitted name and phone number")
            raise NotFoundError("No matching user information.")
        identity = self._identities.get_identity(profile.auth_user_id)
        if identity is None or not identity.email:
            LOGGER.error("Profile id=%s has no identity", profile.id)
            raise NotFoundError("User information could not be found.")
        return mask_email(identity.email)
