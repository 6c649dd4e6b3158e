from sqlalchemy import Boolean, Column, DateTime, String

from credittalk_auth.database import Base


class IdentityEntry(Base):
    __tablename__ = "auth_identities"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    phone = Column(String(16), nullable=True, index=True)
    email_confirmed = Column(Boolean, nullable=False, default=False)
    phone_confirmed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
