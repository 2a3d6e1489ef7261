"""
Domain errors for the account verification flow.

Each error knows the HTTP status it maps to; the handlers in ``main`` render
them as ``{"message": ...}``.
"""
from fastapi import status


class AuthError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "All fields required"


class AccountExists(AuthError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Account already exists"


class InvalidOrExpiredOtp(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid or expired OTP"


class InvalidCredentials(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"


class NotVerified(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Please verify email first"


class EmailDeliveryError(Exception):
    """Raised when the mail provider rejects or cannot take a message."""
