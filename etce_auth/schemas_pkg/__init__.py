# etce_auth/schemas_pkg/__init__.py

from .auth import (
    SignupRequest,
    SignupResponse,
    VerifyOTPRequest,
    LoginRequest,
    LoginResponse,
    UserProfile,
    MessageResponse,
)

__all__ = [
    "SignupRequest",
    "SignupResponse",
    "VerifyOTPRequest",
    "LoginRequest",
    "LoginResponse",
    "UserProfile",
    "MessageResponse",
]
