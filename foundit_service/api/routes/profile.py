"""
Profile and notification routes
"""
from fastapi import APIRouter, Depends
from typing import List

from ...schemas import ProfileResponse, PostResponse, MessageResponse
from ...domain.models import Principal
from ...application.services import AccountService, PostService
from ..dependencies import get_account_service, get_post_service, get_current_principal


router = APIRouter(prefix="/api", tags=["Profile"])


@router.get("/profile", response_model=ProfileResponse)
async def get_my_profile(
    current_user: Principal = Depends(get_current_principal),
    account_service: AccountService = Depends(get_account_service)
):
    """
    Get current account's profile and notifications

    Requires authentication.
    """
    account = await account_service.get_profile(current_user.id)
    return ProfileResponse.from_account(account)


@router.get("/profile/posts", response_model=List[PostResponse])
async def get_my_posts(
    current_user: Principal = Depends(get_current_principal),
    post_service: PostService = Depends(get_post_service)
):
    """
    Get current account's posts, newest first

    Requires authentication.
    """
    posts = await post_service.list_posts_by_owner(current_user.id)
    return [PostResponse.from_post(post) for post in posts]


@router.post("/notifications/clear", response_model=MessageResponse)
async def clear_notifications(
    current_user: Principal = Depends(get_current_principal),
    account_service: AccountService = Depends(get_account_service)
):
    """
    Empty the current account's notification list

    Requires authentication.
    """
    await account_service.clear_notifications(current_user.id)
    return MessageResponse(message="Notifications cleared")
