"""
Pydantic schemas for request/response validation

Responses are serialised with camelCase keys, the shape the web client reads.
"""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime

from .domain.models import Account, Claim, ClaimStats, Post


class CamelModel(BaseModel):
    """Base model emitting camelCase JSON"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class SignupRequest(BaseModel):
    """Signup request"""
    email: str
    password: str


class LoginRequest(BaseModel):
    """Login request"""
    email: Optional[str] = None
    password: Optional[str] = None


class AccountPublic(CamelModel):
    """Account as returned to its owner after signup/login"""
    id: str
    email: str
    username: str
    role: str

    @classmethod
    def from_account(cls, account: Account) -> "AccountPublic":
        return cls(id=account.id, email=account.email, username=account.username, role=account.role.value)


class AuthResponse(CamelModel):
    """Signup/login response"""
    message: str
    token: str
    user: AccountPublic


class PosterInfo(CamelModel):
    """Poster fields joined into post listings"""
    id: str
    email: str
    username: str


class PostResponse(CamelModel):
    """Post response"""
    id: str
    name: str
    item: str
    desc: str
    image_url: Optional[str] = None
    status: str
    contact: str = ""
    location: Optional[str] = None
    date: Optional[datetime] = None
    user_id: Optional[str] = None
    user: Optional[PosterInfo] = None

    @classmethod
    def from_post(cls, post: Post, poster: Optional[Account] = None) -> "PostResponse":
        return cls(
            id=post.id,
            name=post.name,
            item=post.item,
            desc=post.desc,
            image_url=post.image_url,
            status=post.status.value,
            contact=post.contact,
            location=post.location,
            date=post.date,
            user_id=post.user_id,
            user=PosterInfo(**poster.public_info()) if poster else None,
        )


class ClaimResponse(CamelModel):
    """Claim response"""
    id: str
    post_id: str
    claimant_id: str
    status: str
    claimed_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    @classmethod
    def from_claim(cls, claim: Claim) -> "ClaimResponse":
        return cls(
            id=claim.id,
            post_id=claim.post_id,
            claimant_id=claim.claimant_id,
            status=claim.status.value,
            claimed_at=claim.claimed_at,
            resolved_at=claim.resolved_at,
        )


class ClaimSubmittedResponse(CamelModel):
    """Claim creation response"""
    message: str
    claim: ClaimResponse


class ClaimPostSummary(CamelModel):
    """Post fields joined into the admin claim listing"""
    id: str
    name: str
    item: str
    status: str
    username: Optional[str] = None


class ClaimantSummary(CamelModel):
    """Claimant fields joined into the admin claim listing"""
    id: str
    username: str


class ClaimDetailResponse(ClaimResponse):
    """Claim with post and claimant details"""
    post: Optional[ClaimPostSummary] = None
    claimant: Optional[ClaimantSummary] = None


class ClaimStatsResponse(CamelModel):
    """Admin dashboard counters"""
    total_posts: int
    pending_claims: int
    resolved_claims: int

    @classmethod
    def from_stats(cls, stats: ClaimStats) -> "ClaimStatsResponse":
        return cls(
            total_posts=stats.total_posts,
            pending_claims=stats.pending_claims,
            resolved_claims=stats.resolved_claims,
        )


class NotificationResponse(CamelModel):
    """Inbox entry"""
    message: str
    date: datetime


class ProfileResponse(CamelModel):
    """Own profile with notifications"""
    id: str
    username: str
    email: str
    role: str
    created_at: Optional[datetime] = None
    notifications: List[NotificationResponse] = []

    @classmethod
    def from_account(cls, account: Account) -> "ProfileResponse":
        return cls(
            id=account.id,
            username=account.username,
            email=account.email,
            role=account.role.value,
            created_at=account.created_at,
            notifications=[
                NotificationResponse(message=n.message, date=n.date)
                for n in account.notifications
            ],
        )


class MessageResponse(BaseModel):
    """Generic message response"""
    message: str

