from sqlalchemy import Column, DateTime, Index, Integer, String

from credittalk_auth.database import Base


class PhoneVerificationEntry(Base):
    __tablename__ = "phone_verifications"

    id = Column(Integer, primary_key=True)
    phone = Column(String(11), nullable=False, index=True)
    hashed_otp = Column(String(64), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_phone_verifications_phone_otp", "phone", "hashed_otp"),
        Index("ix_phone_verifications_expires_at", "expires_at"),
    )
