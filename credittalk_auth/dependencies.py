"""Per-request collaborators.

Every request gets fresh store objects bound to the shared session factory.
Tests swap any of the first three providers through dependency_overrides.
"""

from fastapi import Depends
from sqlalchemy.orm import sessionmaker

from credittalk_auth.database import SessionLocal
from credittalk_auth.services.identity import IdentityStore
from credittalk_auth.services.otp import Clock, OtpIssuer, VerificationStore, utcnow
from credittalk_auth.services.signup import SignupCommitter
from credittalk_auth.services.sms import SmsSender, TwilioSmsSender
from credittalk_auth.services.users import AccountLookup, ProfileStore


def get_session_factory() -> sessionmaker:
    return SessionLocal


def get_sms_sender() -> SmsSender:
    return TwilioSmsSender.from_settings()


def get_clock() -> Clock:
    return utcnow


def get_otp_issuer(
    sessions: sessionmaker = Depends(get_session_factory),
    sms: SmsSender = Depends(get_sms_sender),
    clock: Clock = Depends(get_clock),
) -> OtpIssuer:
    return OtpIssuer(VerificationStore(sessions), ProfileStore(sessions), sms, clock=clock)


def get_signup_committer(
    sessions: sessionmaker = Depends(get_session_factory),
    clock: Clock = Depends(get_clock),
) -> SignupCommitter:
    return SignupCommitter(
        VerificationStore(sessions),
        IdentityStore(sessions),
        ProfileStore(sessions),
        clock=clock,
    )


def get_account_lookup(
    sessions: sessionmaker = Depends(get_session_factory),
) -> AccountLookup:
    return AccountLookup(IdentityStore(sessions), ProfileStore(sessions))
