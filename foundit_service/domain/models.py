"""
Domain models - Core business entities
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List
from enum import Enum


class Role(str, Enum):
    """Account role enumeration"""
    USER = "user"
    ADMIN = "admin"


class PostStatus(str, Enum):
    """Post status enumeration"""
    LOST = "lost"
    FOUND = "found"
    CLAIMED = "claimed"


class ClaimStatus(str, Enum):
    """Claim status enumeration"""
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"

    @property
    def is_terminal(self) -> bool:
        return self is not ClaimStatus.PENDING


@dataclass
class Notification:
    """Inbox entry"""
    message: str
    date: datetime


@dataclass
class Account:
    """Account domain model - a user or an admin"""
    id: str
    email: str
    username: str
    password_hash: str
    role: Role = Role.USER
    notifications: List[Notification] = field(default_factory=list)
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def public_info(self) -> dict:
        """Fields safe to expose to other accounts"""
        return {"id": self.id, "email": self.email, "username": self.username}


@dataclass
class Principal:
    """Authenticated identity decoded from an access token"""
    id: str
    email: str
    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


@dataclass
class Post:
    """Lost/found item posting"""
    id: str
    name: str
    item: str
    desc: str
    user_id: Optional[str]
    status: PostStatus = PostStatus.LOST
    contact: str = ""
    location: Optional[str] = None
    image_url: Optional[str] = None
    date: Optional[datetime] = None


@dataclass
class Claim:
    """A claimant's assertion on a post"""
    id: str
    post_id: str
    claimant_id: str
    status: ClaimStatus = ClaimStatus.PENDING
    claimed_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    def can_transition_to(self, target: ClaimStatus) -> bool:
        """
        Check whether the claim may move to target

        Pending claims may be approved or denied. A resolved claim may only
        have its own resolution re-applied.
        """
        if not target.is_terminal:
            return False
        if self.status is ClaimStatus.PENDING:
            return True
        return self.status is target


@dataclass
class ClaimStats:
    """Aggregate claim counters"""
    total_posts: int
    pending_claims: int
    resolved_claims: int
