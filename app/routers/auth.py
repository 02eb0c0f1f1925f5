# app/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException, status
from jose import JWTError
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.schemas.base import ApiResponse, MessageData, ok
from app.schemas.user import (
    UserCreate, UserResponse, Token, LoginRequest, RefreshRequest, ChangePasswordRequest,
)
from app.database import get_db
from app.utils.password import hash_password, verify_password
from app.core.security import create_access_token, create_refresh_token, decode_token
from app.core.auth import get_current_user
from app.core.logging import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_tokens(user: User) -> Token:
    return Token(
        access_token=create_access_token({"sub": str(user.id)}),
        refresh_token=create_refresh_token({"sub": str(user.id)}),
        token_type="bearer",
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=ApiResponse[UserResponse], status_code=201)
async def register(user_in: UserCreate, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(func.lower(User.email) == user_in.email.lower()))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Email already registered")

    try:
        hashed_pw = hash_password(user_in.password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    user = User(
        email=user_in.email.lower(),
        name=user_in.name,
        hashed_password=hashed_pw,
        position=user_in.position,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Registered user %s", user.id)
    return ok(UserResponse.model_validate(user))


@router.post("/login", response_model=ApiResponse[Token])
async def login(user_in: LoginRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(func.lower(User.email) == user_in.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(user_in.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Account is deactivated")

    return ok(_issue_tokens(user))


@router.post("/refresh", response_model=ApiResponse[Token])
async def refresh(request: RefreshRequest, db: AsyncSession = Depends(get_db)):
    invalid = HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid refresh token")
    try:
        payload = decode_token(request.refresh_token)
    except JWTError:
        raise invalid
    if payload.get("type") != "refresh" or payload.get("sub") is None:
        raise invalid

    result = await db.execute(select(User).where(User.id == int(payload["sub"])))
    user = result.scalar_one_or_none()
    if user is None:
        raise invalid
    if not user.is_active:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Account is deactivated")
    return ok(_issue_tokens(user))


@router.get("/me", response_model=ApiResponse[UserResponse])
async def read_users_me(current_user: User = Depends(get_current_user)):
    return ok(UserResponse.model_validate(current_user))


@router.post("/change-password", response_model=ApiResponse[MessageData])
async def change_password(
    request: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    if not verify_password(request.current_password, current_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )

    if verify_password(request.new_password, current_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="New password must be different"
        )

    try:
        hashed_new = hash_password(request.new_password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    current_user.hashed_password = hashed_new
    db.add(current_user)
    await db.commit()

    return ok(MessageData(message="Password updated successfully"))
