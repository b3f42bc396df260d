"""Auth API router - reviewer login and logout."""

from fastapi import APIRouter

from app.core.config import settings
from app.dependencies.auth import CurrentReviewer, TokenPayload
from app.domains.auth.schemas import LoginRequest, LoginResponse
from app.domains.auth.service import AuthService
from app.domains.feedback.dashboard import dashboard_sessions

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest):
    """
    Login with the reviewer email and password.

    Returns an access token for the dashboard endpoints.
    """
    service = AuthService(settings)
    access_token = service.login(email=request.email, password=request.password)

    return LoginResponse(
        access_token=access_token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


@router.post("/logout")
async def logout(reviewer: CurrentReviewer, payload: TokenPayload):
    """
    Logout current session.

    Blacklists the current access token.
    """
    await AuthService(settings).logout(payload)
    dashboard_sessions.drop(reviewer["reviewer_id"])

    return {"message": "Logged out successfully"}
