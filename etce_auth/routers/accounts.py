# etce_auth/routers/accounts.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from etce_auth.db import get_db
from etce_auth.models import Role
from etce_auth.schemas_pkg.auth import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    SignupRequest,
    SignupResponse,
    VerifyOTPRequest,
)
from etce_auth.services import account_service
from etce_auth.services.account_service import MESSAGES

ERROR_RESPONSES = {
    400: {"model": MessageResponse},
    401: {"model": MessageResponse},
    403: {"model": MessageResponse},
    409: {"model": MessageResponse},
    500: {"model": MessageResponse},
}


def build_router(role: Role) -> APIRouter:
    """
    Routes for one account category. main.py mounts one of these per role
    under /api/<role>, so student and faculty share the exact same shape.
    """
    router = APIRouter(tags=[role.label])

    # -------------------------------------------
    # Signup → OTP mail
    # -------------------------------------------
    @router.post(
        "/signup",
        response_model=SignupResponse,
        responses={k: ERROR_RESPONSES[k] for k in (400, 409, 500)},
    )
    async def signup(request: SignupRequest, db: Session = Depends(get_db)):
        registration = await account_service.register(
            db, role, request.name, request.email, request.password
        )
        return SignupResponse(
            message=registration.message,
            email=registration.email,
            notification=registration.notification,
        )

    # -------------------------------------------
    # Verify OTP
    # -------------------------------------------
    # plain defs from here on: bcrypt and DB calls run in the threadpool
    @router.post(
        "/verify-otp",
        response_model=MessageResponse,
        responses={400: ERROR_RESPONSES[400]},
    )
    def verify_otp(request: VerifyOTPRequest, db: Session = Depends(get_db)):
        account_service.verify_otp(db, role, request.email, request.otp)
        return MessageResponse(message=MESSAGES[role]["verified"])

    # -------------------------------------------
    # Login
    # -------------------------------------------
    @router.post(
        "/login",
        response_model=LoginResponse,
        responses={k: ERROR_RESPONSES[k] for k in (400, 401, 403)},
    )
    def login(request: LoginRequest, db: Session = Depends(get_db)):
        profile = account_service.login(db, role, request.email, request.password)
        return LoginResponse(message=MESSAGES[role]["login_ok"], user=profile)

    return router


student_router = build_router(Role.STUDENT)
faculty_router = build_router(Role.FACULTY)
