"""
Post routes
"""
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from typing import List, Optional

from ...schemas import PostResponse, ClaimSubmittedResponse, ClaimResponse
from ...domain.models import Principal
from ...application.services import PostService, ClaimService
from ..dependencies import get_post_service, get_claim_service, get_current_principal


router = APIRouter(prefix="/api/posts", tags=["Posts"])


@router.get("", response_model=List[PostResponse])
async def list_posts(post_service: PostService = Depends(get_post_service)):
    """
    List all posts, newest first
    """
    return [PostResponse.from_post(post, poster) for post, poster in await post_service.list_posts()]


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    name: Optional[str] = Form(None),
    item: Optional[str] = Form(None),
    desc: Optional[str] = Form(None),
    status_: Optional[str] = Form(None, alias="status"),
    contact: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current_user: Principal = Depends(get_current_principal),
    post_service: PostService = Depends(get_post_service)
):
    """
    Create a post (multipart form)

    - **name**, **item**, **desc**: Required
    - **status**: `lost` (default) or `found`
    - **contact**: Required for lost items
    - **location**: Optional
    - **image**: Optional jpeg/png
    - Requires authentication
    """
    post, poster = await post_service.create_post(
        owner_id=current_user.id,
        name=name,
        item=item,
        desc=desc,
        status=status_,
        contact=contact,
        location=location,
        image=image
    )
    return PostResponse.from_post(post, poster)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: str, post_service: PostService = Depends(get_post_service)):
    """
    Get post by ID
    """
    post, poster = await post_service.get_post(post_id)
    return PostResponse.from_post(post, poster)


@router.post("/{post_id}/claim", response_model=ClaimSubmittedResponse, status_code=status.HTTP_201_CREATED)
async def claim_post(
    post_id: str,
    current_user: Principal = Depends(get_current_principal),
    claim_service: ClaimService = Depends(get_claim_service)
):
    """
    Claim a post

    - One claim per user per post
    - Requires authentication
    """
    claim = await claim_service.create_claim(post_id, current_user)
    return ClaimSubmittedResponse(
        message="Claim submitted successfully",
        claim=ClaimResponse.from_claim(claim)
    )
