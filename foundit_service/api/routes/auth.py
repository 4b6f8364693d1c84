"""
Authentication routes
"""
from fastapi import APIRouter, Depends, status

from ...schemas import SignupRequest, LoginRequest, AuthResponse, AccountPublic
from ...application.services import AuthService
from ..dependencies import get_auth_service


router = APIRouter(prefix="/api", tags=["Authentication"])


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    user_data: SignupRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Register a new account

    - **email**: Institutional address; `@admin.riphah.edu.pk` creates an admin
    - **password**: At least 6 characters for students and faculty
    """
    account, token = await auth_service.signup(email=user_data.email, password=user_data.password)

    return AuthResponse(
        message="Admin created" if account.is_admin else "User created",
        token=token,
        user=AccountPublic.from_account(account)
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Login with email and password
    """
    account, token = await auth_service.login(email=credentials.email, password=credentials.password)

    return AuthResponse(
        message="Admin login successful" if account.is_admin else "Login successful",
        token=token,
        user=AccountPublic.from_account(account)
    )
