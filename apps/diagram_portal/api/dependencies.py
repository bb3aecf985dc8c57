"""
API Dependencies
================

JWT token creation/validation, current-user extraction, record store
providers and the diagram ownership guard. Used by all protected endpoints.

Tests replace the store providers through ``app.dependency_overrides``.
"""

from datetime import datetime, timedelta, timezone
from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import BaseModel

from fishbone.database.store import DiagramStore, JsonRecordStore, RecordStore
from fishbone.diagram.models import Diagram

from .config import get_diagrams_db_path, get_users_db_path, settings


# Security scheme
security = HTTPBearer()


class TokenData(BaseModel):
    """Data extracted from JWT token"""
    user_id: str
    email: str
    name: str
    exp: datetime


class CurrentUser(BaseModel):
    """Current authenticated user"""
    id: str
    email: str
    name: str


# ============================================================
# Store providers
# ============================================================

@lru_cache()
def _users_records() -> RecordStore:
    return JsonRecordStore(get_users_db_path(), "users")


@lru_cache()
def _diagram_store() -> DiagramStore:
    return DiagramStore(JsonRecordStore(get_diagrams_db_path(), "diagrams"))


def get_users_store() -> RecordStore:
    return _users_records()


def get_diagram_store() -> DiagramStore:
    return _diagram_store()


# ============================================================
# Tokens
# ============================================================

def create_access_token(user_id: str, email: str, name: str) -> str:
    """Create a new JWT access token"""
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": user_id,
        "email": email,
        "name": name,
        "exp": expire,
        "type": "access"
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str, token_type: str = "access") -> TokenData:
    """Verify and decode a JWT token"""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Check token type
    if payload.get("type") != token_type:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type"
        )

    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload"
        )

    return TokenData(
        user_id=user_id,
        email=payload.get("email", ""),
        name=payload.get("name", ""),
        exp=datetime.fromtimestamp(payload.get("exp", 0), tz=timezone.utc),
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    users: RecordStore = Depends(get_users_store),
) -> CurrentUser:
    """
    Dependency to get current authenticated user.

    Usage:
        @router.get("/protected")
        async def protected_route(user: CurrentUser = Depends(get_current_user)):
            return {"id": user.id}
    """
    token_data = verify_token(credentials.credentials, "access")

    user = users.get(token_data.user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    return CurrentUser(
        id=user["id"],
        email=user.get("email", token_data.email),
        name=user.get("name", token_data.name),
    )


# ============================================================
# Ownership guard
# ============================================================

async def require_diagram_owner(
    diagram_id: str,
    user: CurrentUser = Depends(get_current_user),
    store: DiagramStore = Depends(get_diagram_store),
) -> Diagram:
    """
    Load the diagram named in the path and check the caller created it.

    404 when it does not exist, 403 when someone else owns it.
    """
    diagram = store.get(diagram_id)
    if diagram is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Diagram with ID {diagram_id} not found"
        )
    if diagram.creator_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to access this diagram"
        )
    return diagram
