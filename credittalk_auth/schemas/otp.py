from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OtpRequest(BaseModel):
    phone: Optional[str] = Field(default=None, max_length=32)


class SignupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=128)
    name: Optional[str] = Field(default=None, max_length=50)
    nickname: Optional[str] = Field(default=None, max_length=50)
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber", max_length=32)
    job_type: Optional[str] = Field(default=None, alias="jobType", max_length=50)
    otp: Optional[str] = Field(default=None, max_length=16)


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    error: str
