from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EmailAvailabilityRequest(BaseModel):
    email: Optional[str] = None


class NicknameAvailabilityRequest(BaseModel):
    nickname: Optional[str] = None


class AvailabilityResponse(BaseModel):
    available: bool


class FindEmailRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")


class FindEmailResponse(BaseModel):
    email: str
