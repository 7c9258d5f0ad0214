# Authentication API routes for user registration, login, and profile lookup

from fastapi import APIRouter, Depends, status

from app.api.responses import ERROR_RESPONSES, raise_for_result
from app.dependencies.auth import Identity, get_identity, require_identity
from app.dependencies.services import get_auth_service
from app.schemas import AuthResponse, LoginRequest, RegisterRequest, UserInfo
from app.services.auth_service import AuthService, LoginSuccess

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

# Routes that need a bearer token; require_identity runs before each of them.
protected_router = APIRouter(
    prefix="/api/auth",
    tags=["Authentication"],
    dependencies=[Depends(require_identity)],
)


def _auth_response(success: LoginSuccess) -> AuthResponse:
    return AuthResponse(
        token=success.token,
        user_id=success.user_id,
        username=success.username,
        expires_at=success.expires_at,
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def register_user(
    user_data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Register a new user and return a token for the new account."""
    result = await auth_service.register(user_data.username, user_data.password)
    return _auth_response(raise_for_result(result))


@router.post("/login", response_model=AuthResponse, responses=ERROR_RESPONSES)
async def login_user(
    user_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Authenticate user and return a bearer token for API access."""
    result = await auth_service.login(user_data.username, user_data.password)
    return _auth_response(raise_for_result(result))


@protected_router.get("/me", response_model=UserInfo)
async def get_current_user_info(identity: Identity = Depends(get_identity)):
    """Identity carried by the caller's token."""
    return UserInfo(id=identity.user_id, username=identity.username)
