"""
Authentication Routes
=====================

POST /auth/register  - Create an account, returns a token
POST /auth/login     - Login with email/password
GET  /auth/profile   - Get current user info
GET  /auth/verify    - Check that a token is still valid
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field

from fishbone.database.store import RecordStore

from ..dependencies import (
    CurrentUser,
    create_access_token,
    get_current_user,
    get_users_store,
)
from ..services.auth_service import (
    DUPLICATE_EMAIL,
    authenticate_user,
    get_user_by_id,
    register_user,
)


router = APIRouter()


# ============================================================
# Request/Response Models
# ============================================================

class RegisterRequest(BaseModel):
    """Registration request body"""
    email: EmailStr
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    name: str = Field(..., min_length=1, max_length=100)


class LoginRequest(BaseModel):
    """Login request body"""
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """Public user info"""
    id: str
    email: str
    name: str
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class AuthResponse(BaseModel):
    """Token plus the user it was issued to"""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class VerifyResponse(BaseModel):
    valid: bool
    user: UserResponse


def _auth_response(user: dict) -> AuthResponse:
    token = create_access_token(user_id=user["id"], email=user["email"], name=user["name"])
    return AuthResponse(access_token=token, user=UserResponse(**user))


# ============================================================
# Routes
# ============================================================

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, users: RecordStore = Depends(get_users_store)):
    """
    Create a new account.

    Returns a JWT access token so the user is logged in straight away.
    """
    success, message, user = register_user(users, request.email, request.password, request.name)

    if not success:
        if message == DUPLICATE_EMAIL:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=message
            )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=message
        )

    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, users: RecordStore = Depends(get_users_store)):
    """
    Login with email and password.

    Returns a JWT access token.
    """
    success, message, user = authenticate_user(users, request.email, request.password)

    if not success:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    return _auth_response(user)


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    user: CurrentUser = Depends(get_current_user),
    users: RecordStore = Depends(get_users_store),
):
    """
    Get current user information.

    Requires valid access token.
    """
    profile = get_user_by_id(users, user.id)

    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    return UserResponse(**profile)


@router.get("/verify", response_model=VerifyResponse)
async def verify(user: CurrentUser = Depends(get_current_user)):
    """Confirm the bearer token is valid and name its user."""
    return VerifyResponse(valid=True, user=UserResponse(id=user.id, email=user.email, name=user.name))
