from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from credittalk_auth.database import Base


class ProfileEntry(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    auth_user_id = Column(
        String(36), ForeignKey("auth_identities.id"), nullable=False, unique=True
    )
    name = Column(String(50), nullable=False)
    nickname = Column(String(50), nullable=False, unique=True)
    phone_number = Column(String(11), nullable=False, unique=True)
    job_type = Column(String(50), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
