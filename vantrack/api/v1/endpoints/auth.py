"""
Auth endpoints: signup, login (OAuth2 password flow), token refresh and
profile management.
"""

from fastapi import APIRouter, Cookie, Depends, Request, Response
from fastapi.security import OAuth2PasswordRequestForm
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from vantrack.api.v1.deps import get_current_active_user, get_db, require_operator
from vantrack.core.config import settings
from vantrack.core.exceptions import ForbiddenError, UnauthorizedError
from vantrack.core.security import (create_access_token, create_refresh_token,
                                    decode_refresh_token)
from vantrack.models.user import User
from vantrack.schemas.common import SuccessResponse
from vantrack.schemas.token import RefreshRequest, Token
from vantrack.schemas.user import (UserActivation, UserCreate, UserListResponse,
                                   UserRead, UserResponse, UserUpdate)
from vantrack.services import users as user_service

# Rate limiter, keyed by client IP
limiter = Limiter(key_func=get_remote_address)

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_tokens(response: Response, user: User) -> Token:
    access_token = create_access_token(user.id, role=user.role)
    refresh_token = create_refresh_token(user.id)

    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    response.set_cookie(
        key="refresh_token",
        value=refresh_token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    )
    return Token(access_token=access_token, refresh_token=refresh_token)


@router.post("/signup", response_model=UserResponse, status_code=201)
async def signup(
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Register a rider or driver account."""
    if body.role == "operator":
        raise ForbiddenError("Operator accounts cannot be self-registered")
    user = await user_service.signup(db, body)
    return UserResponse(user=UserRead.model_validate(user))


@router.post("/login", response_model=Token)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login_for_access_token(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
) -> Token:
    """Authenticate with email/password. Returns tokens and sets HttpOnly cookies."""
    user = await user_service.authenticate(db, form_data.username, form_data.password)
    if not user.is_active:
        raise ForbiddenError("User account is inactive")
    return _issue_tokens(response, user)


@router.post("/refresh", response_model=Token)
async def refresh_access_token_endpoint(
    response: Response,
    body: RefreshRequest | None = None,
    refresh_token_cookie: str | None = Cookie(None, alias="refresh_token"),
    db: AsyncSession = Depends(get_db),
) -> Token:
    # Priority: Body > Cookie
    token_str = body.refresh_token if body and body.refresh_token else refresh_token_cookie
    if not token_str:
        raise UnauthorizedError("Refresh token missing")

    payload = decode_refresh_token(token_str)
    if payload is None:
        raise UnauthorizedError("Invalid or expired refresh token")

    user = await db.get(User, str(payload.get("sub")))
    if user is None or not user.is_active:
        raise UnauthorizedError("User not found or inactive")
    return _issue_tokens(response, user)


@router.post("/logout", response_model=SuccessResponse)
async def logout(response: Response) -> SuccessResponse:
    """Clear auth cookies and end the session."""
    response.delete_cookie("access_token")
    response.delete_cookie("refresh_token")
    return SuccessResponse()


@router.get("/me", response_model=UserResponse)
async def read_current_user(
    current_user: User = Depends(get_current_active_user),
) -> UserResponse:
    """Return profile of the currently authenticated user."""
    return UserResponse(user=UserRead.model_validate(current_user))


@router.put("/me", response_model=UserResponse)
async def update_current_user(
    body: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> UserResponse:
    user = await user_service.update_profile(db, current_user, body)
    return UserResponse(user=UserRead.model_validate(user))


@router.get("/users", response_model=UserListResponse)
async def list_users(
    db: AsyncSession = Depends(get_db),
    _operator: User = Depends(require_operator),
) -> UserListResponse:
    """List every account (operator only)."""
    users = await user_service.list_users(db)
    return UserListResponse(users=[UserRead.model_validate(u) for u in users])


@router.put("/users/{user_id}/active", response_model=UserResponse)
async def set_user_active(
    user_id: str,
    body: UserActivation,
    db: AsyncSession = Depends(get_db),
    operator: User = Depends(require_operator),
) -> UserResponse:
    """Deactivate or reactivate an account (operator only)."""
    user = await user_service.set_active(db, operator, user_id, body.is_active)
    return UserResponse(user=UserRead.model_validate(user))
