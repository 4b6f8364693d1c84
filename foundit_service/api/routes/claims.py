"""
Claim administration routes
"""
from fastapi import APIRouter, Depends
from typing import List

from ...schemas import (
    ClaimDetailResponse, ClaimPostSummary, ClaimantSummary, ClaimStatsResponse,
    ClaimResponse, MessageResponse
)
from ...domain.models import Principal
from ...application.services import ClaimService, ClaimDetails
from ..dependencies import get_claim_service, require_admin


router = APIRouter(prefix="/api/claims", tags=["Claims"])


def _to_detail(details: ClaimDetails) -> ClaimDetailResponse:
    base = ClaimResponse.from_claim(details.claim).model_dump()
    post = details.post
    return ClaimDetailResponse(
        **base,
        post=ClaimPostSummary(
            id=post.id,
            name=post.name,
            item=post.item,
            status=post.status.value,
            username=details.poster.username if details.poster else None
        ) if post else None,
        claimant=ClaimantSummary(
            id=details.claimant.id,
            username=details.claimant.username
        ) if details.claimant else None
    )


@router.get("", response_model=List[ClaimDetailResponse])
async def list_claims(
    admin: Principal = Depends(require_admin),
    claim_service: ClaimService = Depends(get_claim_service)
):
    """
    List all claims with post and claimant details

    Requires admin role.
    """
    return [_to_detail(details) for details in await claim_service.list_claims()]


@router.get("/stats", response_model=ClaimStatsResponse)
async def claim_stats(
    admin: Principal = Depends(require_admin),
    claim_service: ClaimService = Depends(get_claim_service)
):
    """
    Total posts, pending claims and resolved claims

    Requires admin role.
    """
    return ClaimStatsResponse.from_stats(await claim_service.claim_stats())


@router.post("/{claim_id}/approve", response_model=MessageResponse)
async def approve_claim(
    claim_id: str,
    admin: Principal = Depends(require_admin),
    claim_service: ClaimService = Depends(get_claim_service)
):
    """
    Approve a claim; the post becomes claimed and the claimant is notified

    Requires admin role.
    """
    await claim_service.approve_claim(claim_id)
    return MessageResponse(message="Claim approved")


@router.post("/{claim_id}/deny", response_model=MessageResponse)
async def deny_claim(
    claim_id: str,
    admin: Principal = Depends(require_admin),
    claim_service: ClaimService = Depends(get_claim_service)
):
    """
    Deny a claim and notify the claimant

    Requires admin role.
    """
    await claim_service.deny_claim(claim_id)
    return MessageResponse(message="Claim denied")
