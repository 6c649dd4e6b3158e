from fastapi import APIRouter, Depends

from credittalk_auth.dependencies import get_account_lookup
from credittalk_auth.schemas.users import (
    AvailabilityResponse,
    EmailAvailabilityRequest,
    FindEmailRequest,
    FindEmailResponse,
    NicknameAvailabilityRequest,
)
from credittalk_auth.services.users import AccountLookup

router = APIRouter(tags=["users"])


@router.post("/check-email-availability", response_model=AvailabilityResponse)
def check_email_availability(
    payload: EmailAvailabilityRequest, lookup: AccountLookup = Depends(get_account_lookup)
) -> AvailabilityResponse:
    return AvailabilityResponse(available=lookup.email_available(payload.email))


@router.post("/check-nickname-availability", response_model=AvailabilityResponse)
def check_nickname_availability(
    payload: NicknameAvailabilityRequest,
    lookup: AccountLookup = Depends(get_account_lookup),
) -> AvailabilityResponse:
    return AvailabilityResponse(available=lookup.nickname_available(payload.nickname))


@router.post("/find-email-by-profile", response_model=FindEmailResponse)
def find_email_by_profile(
    payload: FindEmailRequest, lookup: AccountLookup = Depends(get_account_lookup)
) -> FindEmailResponse:
    return FindEmailResponse(
        email=lookup.find_masked_email(payload.name, payload.phone_number)
    )
