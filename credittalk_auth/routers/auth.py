from fastapi import APIRouter, Depends, status

from credittalk_auth.dependencies import get_otp_issuer, get_signup_committer
from credittalk_auth.schemas.otp import (
    ErrorResponse,
    MessageResponse,
    OtpRequest,
    SignupRequest,
)
from credittalk_auth.services.otp import OtpIssuer
from credittalk_auth.services.signup import SignupCommitter, SignupData

router = APIRouter(tags=["auth"])

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_409_CONFLICT: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


@router.post(
    "/send-verification-otp",
    response_model=MessageResponse,
    responses={**ERROR_RESPONSES, status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse}},
)
def send_verification_otp(
    payload: OtpRequest, issuer: OtpIssuer = Depends(get_otp_issuer)
) -> MessageResponse:
    issuer.issue(payload.phone)
    return MessageResponse(message="Verification code sent.")


@router.post(
    "/verify-and-signup",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
def verify_and_signup(
    payload: SignupRequest, committer: SignupCommitter = Depends(get_signup_committer)
) -> MessageResponse:
    committer.commit(
        SignupData(
            email=payload.email,
            password=payload.password,
            name=payload.name,
            nickname=payload.nickname,
            phone_number=payload.phone_number,
            job_type=payload.job_type,
            otp=payload.otp,
        )
    )
    return MessageResponse(message="Sign-up completed.")
