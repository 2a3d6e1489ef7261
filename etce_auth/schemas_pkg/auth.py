from typing import Literal, Union

from pydantic import BaseModel, EmailStr, constr, field_validator

NonBlank = constr(strip_whitespace=True, min_length=1)


class MessageResponse(BaseModel):
    message: str


class SignupRequest(BaseModel):
    name: NonBlank
    email: EmailStr
    password: constr(min_length=1)


class SignupResponse(BaseModel):
    message: str
    email: EmailStr
    notification: Literal["queued", "sent", "failed"]


class VerifyOTPRequest(BaseModel):
    email: NonBlank
    otp: Union[str, int]

    @field_validator("otp")
    @classmethod
    def otp_as_string(cls, v):
        # clients sometimes post the code as a JSON number
        return str(v).strip()


class LoginRequest(BaseModel):
    email: NonBlank
    password: constr(min_length=1)


class UserProfile(BaseModel):
    name: str
    email: str


class LoginResponse(BaseModel):
    message: str
    user: UserProfile
