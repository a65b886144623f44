"""
Auth API routes — register, login, user lookup and update, profile.

Route prefix: /api
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, status

from auth.dependencies import get_auth_service, get_current_user_id
from auth.schemas import TokenResponse, UserProfile
from auth.service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: Optional[Dict[str, Any]] = Body(None),
    service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """Register a new user."""
    token = await service.register(payload or {})
    return {"token": token}


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: Optional[Dict[str, Any]] = Body(None),
    service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """Login with email + password."""
    token = await service.login(payload or {})
    return {"token": token}


@router.get("/profile", response_model=UserProfile)
async def profile(
    user_id: str = Depends(get_current_user_id),
    service: AuthService = Depends(get_auth_service),
) -> UserProfile:
    """Current user, resolved from the bearer token."""
    return await service.current_user(user_id)


@router.get("/users/{user_id}", response_model=UserProfile)
async def get_user(
    user_id: str,
    service: AuthService = Depends(get_auth_service),
) -> UserProfile:
    return await service.get_user(user_id)


@router.patch("/users/{user_id}", response_model=UserProfile)
async def update_user(
    user_id: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    auth_user_id: str = Depends(get_current_user_id),
    service: AuthService = Depends(get_auth_service),
) -> UserProfile:
    """Partial update of the caller's own record."""
    return await service.update_user(user_id, payload or {}, actor_id=auth_user_id)
