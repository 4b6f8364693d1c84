"""
Repository interfaces - Define contracts for data access

Every method takes an optional ``session`` so that several writes can share
one store transaction. Implementations without transactions ignore it.
"""
from abc import ABC, abstractmethod
from typing import Any, AsyncContextManager, Dict, List, Optional
from .models import Account, Claim, ClaimStatus, Notification, Post, PostStatus, Role


class IAccountRepository(ABC):
    """Account repository interface"""

    @abstractmethod
    async def create(self, email: str, username: str, password_hash: str,
                     role: Role, session: Any = None) -> Account:
        """
        Insert a new account

        Raises:
            pymongo.errors.DuplicateKeyError: If email or username is taken
        """
        pass

    @abstractmethod
    async def find_by_id(self, account_id: str, session: Any = None) -> Optional[Account]:
        """Find account by ID"""
        pass

    @abstractmethod
    async def find_by_email(self, email: str, session: Any = None) -> Optional[Account]:
        """Find account by email"""
        pass

    @abstractmethod
    async def find_many(self, account_ids: List[str], session: Any = None) -> Dict[str, Account]:
        """Find accounts by ID, keyed by ID"""
        pass

    @abstractmethod
    async def append_notification(self, account_id: str, notification: Notification,
                                  session: Any = None) -> bool:
        """Push a notification onto the account inbox; False if account is missing"""
        pass

    @abstractmethod
    async def clear_notifications(self, account_id: str, session: Any = None) -> bool:
        """Empty the account inbox; False if account is missing"""
        pass


class IPostRepository(ABC):
    """Post repository interface"""

    @abstractmethod
    async def create(self, user_id: str, name: str, item: str, desc: str,
                     status: PostStatus, contact: str, location: Optional[str],
                     image_url: Optional[str], session: Any = None) -> Post:
        """Create a new post"""
        pass

    @abstractmethod
    async def find_by_id(self, post_id: str, session: Any = None) -> Optional[Post]:
        """Find post by ID"""
        pass

    @abstractmethod
    async def find_many(self, post_ids: List[str], session: Any = None) -> Dict[str, Post]:
        """Find posts by ID, keyed by ID"""
        pass

    @abstractmethod
    async def list_all(self, session: Any = None) -> List[Post]:
        """All posts, newest first"""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str, session: Any = None) -> List[Post]:
        """Posts created by a user, newest first"""
        pass

    @abstractmethod
    async def update_status(self, post_id: str, status: PostStatus, session: Any = None) -> bool:
        """Set post status; False if post is missing"""
        pass

    @abstractmethod
    async def compare_and_set_status(self, post_id: str, expected: PostStatus,
                                     new: PostStatus, session: Any = None) -> bool:
        """Set status to new only if it is currently expected"""
        pass

    @abstractmethod
    async def count(self, session: Any = None) -> int:
        """Total number of posts"""
        pass


class IClaimRepository(ABC):
    """Claim repository interface"""

    @abstractmethod
    async def create(self, post_id: str, claimant_id: str, session: Any = None) -> Claim:
        """
        Insert a new pending claim

        Raises:
            pymongo.errors.DuplicateKeyError: If the claimant already claimed the post
        """
        pass

    @abstractmethod
    async def find_by_id(self, claim_id: str, session: Any = None) -> Optional[Claim]:
        """Find claim by ID"""
        pass

    @abstractmethod
    async def list_all(self, session: Any = None) -> List[Claim]:
        """All claims, newest first"""
        pass

    @abstractmethod
    async def compare_and_set_status(self, claim_id: str, expected: ClaimStatus,
                                     new: ClaimStatus, session: Any = None) -> bool:
        """Set status to new only if it is currently expected"""
        pass

    @abstractmethod
    async def has_other_with_status(self, post_id: str, status: ClaimStatus,
                                    exclude_claim_id: str, session: Any = None) -> bool:
        """Whether another claim on the post is in the given status"""
        pass

    @abstractmethod
    async def count_by_status(self, statuses: List[ClaimStatus], session: Any = None) -> int:
        """Count claims in any of the given statuses"""
        pass


class ITransactionManager(ABC):
    """Opens store transactions spanning several repositories"""

    @property
    @abstractmethod
    def supports_transactions(self) -> bool:
        """Whether transaction() yields a real session"""
        pass

    @abstractmethod
    def transaction(self) -> AsyncContextManager[Any]:
        """
        Async context manager yielding a session to pass to repositories

        Yields None when the store runs without transactions; the caller is
        then responsible for compensating partial writes.
        """
        pass
