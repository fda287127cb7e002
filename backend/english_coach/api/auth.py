"""Authentication API endpoints for learners."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel, EmailStr, Field

from ..core.security import (
    create_access_token,
    get_password_hash,
    verify_access_token,
    verify_password,
)
from ..db.models import Learner
from ..db.repositories import SqlLearnerStore
from .deps import get_learner_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

# OAuth2 scheme for JWT bearer tokens
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login")


# ==============================================================================
# Pydantic Models
# ==============================================================================

class LearnerRegister(BaseModel):
    """Learner registration schema."""
    phone_number: str = Field(min_length=3, max_length=32)
    name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)
    email: EmailStr | None = None


class LearnerLogin(BaseModel):
    """Learner login schema."""
    phone_number: str = Field(min_length=1)
    password: str = Field(min_length=1)


def _learner_payload(learner: Learner) -> dict[str, Any]:
    return {
        "id": learner.id,
        "phone_number": learner.phone_number,
        "name": learner.name,
        "email": learner.email,
        "level": learner.level,
        "total_calls": learner.total_calls,
        "total_call_duration": learner.total_call_duration,
    }


def _token_for(learner: Learner) -> str:
    return create_access_token({"learner_id": learner.id, "phone_number": learner.phone_number})


# ==============================================================================
# Authentication Dependencies
# ==============================================================================

async def learner_from_token(token: str, learners: SqlLearnerStore) -> Learner:
    """Resolve a bearer token to a learner or raise 401."""
    payload = verify_access_token(token)
    learner_id = payload.get("learner_id") if payload else None
    if not learner_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    learner = await learners.find(learner_id)
    if not learner:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Learner not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return learner


async def get_current_learner(
    token: str = Depends(oauth2_scheme),
    learners: SqlLearnerStore = Depends(get_learner_store),
) -> Learner:
    """Get the current authenticated learner from JWT token."""
    return await learner_from_token(token, learners)


# ==============================================================================
# Endpoints
# ==============================================================================

@router.post("/register")
async def register(
    request: LearnerRegister,
    learners: SqlLearnerStore = Depends(get_learner_store),
) -> dict[str, Any]:
    """Register a learner and return an access token."""
    if await learners.find_by_phone(request.phone_number):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists with this phone number"
        )

    learner = await learners.create(
        phone_number=request.phone_number,
        name=request.name,
        email=request.email,
        password_hash=get_password_hash(request.password),
    )
    logger.info(f"Registered learner {learner.id}")

    return {
        "message": "User created successfully",
        "access_token": _token_for(learner),
        "token_type": "bearer",
        "user": _learner_payload(learner),
    }


@router.post("/login")
async def login(
    request: LearnerLogin,
    learners: SqlLearnerStore = Depends(get_learner_store),
) -> dict[str, Any]:
    """Exchange phone number and password for an access token."""
    learner = await learners.find_by_phone(request.phone_number)
    if not learner:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User not found"
        )
    if not verify_password(request.password, learner.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid password"
        )

    return {
        "message": "Login successful",
        "access_token": _token_for(learner),
        "token_type": "bearer",
        "user": _learner_payload(learner),
    }


@router.get("/me")
async def me(current_learner: Learner = Depends(get_current_learner)) -> dict[str, Any]:
    """Profile and running totals of the authenticated learner."""
    return _learner_payload(current_learner)
