"""Identity provider collaborator.

Identities are the credential-bearing half of an account. They are kept in
their own table and reached only through this store so that the signup flow
treats them as an external provider would be treated: create, look up, delete.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from argon2 import PasswordHasher
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from credittalk_auth.database import storage_scope
from credittalk_auth.errors import ConflictError, ValidationError
from credittalk_auth.models.identity import IdentityEntry

LOGGER = logging.getLogger(__name__)

PASSWORD_HASHER = PasswordHasher()


def hash_password(password: str) -> str:
    return PASSWORD_HASHER.hash(password)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class IdentityStore:
    def __init__(self, sessions: sessionmaker) -> None:
        self._sessions = sessions

    def create_identity(
        self, email: str, password: str, phone: str, confirmed: bool = False
    ) -> str:
        key = normalize_email(email)
        if not key or "@" not in key:
            raise ValidationError("Enter a valid email address.")
        identity_id = str(uuid.uuid4())
        with storage_scope(self._sessions, "create identity") as session:
            existing = session.execute(
                select(IdentityEntry.id).where(IdentityEntry.email == key)
            ).scalar_one_or_none()
            if existing:
                raise ConflictError("This email is already registered.")
            session.add(
                IdentityEntry(
                    id=identity_id,
                    email=key,
                    password_hash=hash_password(password),
                    phone=phone,
                    email_confirmed=confirmed,
                    phone_confirmed=confirmed,
                    created_at=datetime.now(timezone.utc),
                )
            )
            try:
                session.flush()
            except IntegrityError as exc:
                # Concurrent signup with the same email won the insert.
                raise ConflictError("This email is already registered.") from exc
        LOGGER.info("Created identity id=%s", identity_id)
        return identity_id

    def delete_identity(self, identity_id: str) -> bool:
        with storage_scope(self._sessions, "delete identity") as session:
            entry = session.get(IdentityEntry, identity_id)
            if entry is None:
                return False
            session.delete(entry)
        LOGGER.info("Deleted identity id=%s", identity_id)
        return True

    def get_identity(self, identity_id: str) -> Optional[IdentityEntry]:
        with storage_scope(self._sessions, "load identity") as session:
            return session.get(IdentityEntry, identity_id)

    def find_by_phone_or_email(
        self, phone: Optional[str] = None, email: Optional[str] = None
    ) -> Optional[IdentityEntry]:
        conditions = []
        if phone:
            conditions.append(IdentityEntry.phone == phone)
        if email:
            conditions.append(IdentityEntry.email == normalize_email(email))
        if not conditions:
            return None
        with storage_scope(self._sessions, "look up identity") as session:
            return (
                session.execute(select(IdentityEntry).where(or_(*conditions)))
                .scalars()
                .first()
            )

    def email_exists(self, email: str) -> bool:
        key = normalize_email(email)
        with storage_scope(self._sessions, "check email") as session:
            count = session.execute(
                select(func.count())
                .select_from(IdentityEntry)
                .where(IdentityEntry.email == key)
            ).scalar_one()
            return count > 0
