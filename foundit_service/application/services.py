"""
Application services - Business logic layer
"""
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from functools import partial
from typing import Any, Awaitable, Callable, List, Optional, Tuple
import logging
import re

from fastapi import UploadFile
from pymongo.errors import DuplicateKeyError

from ..config import settings
from ..domain.models import (
    Account, Claim, ClaimStats, ClaimStatus, Notification, Post, PostStatus, Principal, Role
)
from ..domain.repositories import (
    IAccountRepository, IClaimRepository, IPostRepository, ITransactionManager
)
from ..errors import ConflictError, ForbiddenError, NotFoundError, UnauthorizedError, ValidationError
from ..infrastructure.auth import (
    burn_password_check,
    create_access_token,
    hash_password,
    verify_password,
)
from ..infrastructure.storage import ImageStorage

logger = logging.getLogger(__name__)

_INDEX_NAME_RE = re.compile(r"index: (\w+?)_-?1")


def duplicate_key_field(error: DuplicateKeyError) -> Optional[str]:
    """Name of the first field of the unique index that rejected a write"""
    details = error.details or {}
    key_pattern = details.get("keyPattern") or details.get("keyValue")
    if key_pattern:
        return next(iter(key_pattern))

    match = _INDEX_NAME_RE.search(str(error))
    return match.group(1) if match else None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthService:
    """Authentication service - handles signup and login"""

    def __init__(self, account_repository: IAccountRepository):
        self.account_repo = account_repository

    def _role_for_email(self, email: str) -> Role:
        if email.endswith(settings.ADMIN_EMAIL_DOMAIN):
            return Role.ADMIN
        return Role.USER

    def _validate_signup(self, email: str, password: str, role: Role) -> None:
        """Admission rule: admins need a password, users an institutional address and a long enough one"""
        if not email or not password:
            raise ValidationError("Invalid email or password")

        if role is Role.ADMIN:
            return

        if not any(email.endswith(domain) for domain in settings.USER_EMAIL_DOMAINS):
            raise ValidationError("Invalid email or password")
        if len(password) < settings.PASSWORD_MIN_LENGTH:
            raise ValidationError("Invalid email or password")

    async def signup(self, email: str, password: str) -> Tuple[Account, str]:
        """
        Register a new account

        The role is inferred from the e-mail domain and the username from its
        local part, suffixed with a counter until the unique index accepts it.

        Returns:
            Tuple of (account, access_token)
        """
        email = (email or "").strip().lower()
        role = self._role_for_email(email)
        self._validate_signup(email, password, role)

        exists_message = "Admin already exists" if role is Role.ADMIN else "User already exists"

        if await self.account_repo.find_by_email(email):
            raise ConflictError(exists_message)

        password_hash = hash_password(password)
        base_username = email.split("@")[0]

        account = None
        for attempt in range(settings.USERNAME_MAX_ATTEMPTS):
            username = base_username if attempt == 0 else f"{base_username}{attempt}"
            try:
                account = await self.account_repo.create(
                    email=email,
                    username=username,
                    password_hash=password_hash,
                    role=role
                )
                break
            except DuplicateKeyError as e:
                if duplicate_key_field(e) == "username":
                    continue
                raise ConflictError(exists_message)

        if account is None:
            logger.error(f"No free username for {base_username!r} after {settings.USERNAME_MAX_ATTEMPTS} attempts")
            raise ConflictError("Could not allocate a unique username")

        logger.info(f"Registered {role.value} account {account.username} ({account.id})")
        return account, create_access_token(account)

    async def login(self, email: str, password: str) -> Tuple[Account, str]:
        """
        Login with email and password

        Every failure produces the same error so accounts cannot be enumerated.

        Returns:
            Tuple of (account, access_token)
        """
        email = (email or "").strip().lower()
        password = password or ""

        account = await self.account_repo.find_by_email(email) if email else None

        if account is None:
            burn_password_check(password)
            raise UnauthorizedError("Invalid credentials")

        if not verify_password(password, account.password_hash):
            raise UnauthorizedError("Invalid credentials")

        return account, create_access_token(account)


class AccountService:
    """Account service - profile and notification inbox"""

    def __init__(self, account_repository: IAccountRepository):
        self.account_repo = account_repository

    async def get_profile(self, account_id: str) -> Account:
        """Get account by ID"""
        account = await self.account_repo.find_by_id(account_id)
        if not account:
            raise NotFoundError("Account not found")
        return account

    async def append_notification(self, account_id: str, message: str, session: Any = None) -> Notification:
        """Append a message to the account inbox"""
        notification = Notification(message=message, date=utcnow())
        if not await self.account_repo.append_notification(account_id, notification, session=session):
            raise NotFoundError("Account not found")
        return notification

    async def clear_notifications(self, account_id: str) -> None:
        """Empty the account inbox"""
        if not await self.account_repo.clear_notifications(account_id):
            raise NotFoundError("Account not found")


class PostService:
    """Post service - lost/found listings"""

    def __init__(
        self,
        post_repository: IPostRepository,
        account_repository: IAccountRepository,
        storage: ImageStorage
    ):
        self.post_repo = post_repository
        self.account_repo = account_repository
        self.storage = storage

    async def create_post(
        self,
        owner_id: str,
        name: Optional[str],
        item: Optional[str],
        desc: Optional[str],
        status: Optional[str] = None,
        contact: Optional[str] = None,
        location: Optional[str] = None,
        image: Optional[UploadFile] = None
    ) -> Tuple[Post, Optional[Account]]:
        """
        Create a post, storing the optional image first

        Returns:
            Tuple of (post, poster)
        """
        name, item, desc = (name or "").strip(), (item or "").strip(), (desc or "").strip()
        if not name or not item or not desc:
            raise ValidationError("Name, item, and description are required")

        try:
            post_status = PostStatus((status or PostStatus.LOST.value).strip().lower())
        except ValueError:
            raise ValidationError("Invalid status")
        if post_status is PostStatus.CLAIMED:
            raise ValidationError("Invalid status")

        contact = (contact or "").strip()
        if post_status is PostStatus.LOST and not contact:
            raise ValidationError("Contact is required for lost items")
        if post_status is not PostStatus.LOST:
            contact = ""

        image_url = None
        if image is not None and image.filename:
            image_url = await self.storage.save_upload(image)

        try:
            post = await self.post_repo.create(
                user_id=owner_id,
                name=name,
                item=item,
                desc=desc,
                status=post_status,
                contact=contact,
                location=(location or "").strip() or None,
                image_url=image_url
            )
        except Exception:
            if image_url:
                self.storage.delete(image_url)
            raise

        logger.info(f"Account {owner_id} posted {post_status.value} item {post.id}")
        poster = await self.account_repo.find_by_id(owner_id)
        return post, poster

    async def list_posts(self) -> List[Tuple[Post, Optional[Account]]]:
        """All posts, newest first, with their posters"""
        posts = await self.post_repo.list_all()
        posters = await self.account_repo.find_many([p.user_id for p in posts if p.user_id])
        return [(post, posters.get(post.user_id)) for post in posts]

    async def get_post(self, post_id: str) -> Tuple[Post, Optional[Account]]:
        """Get post by ID with its poster"""
        post = await self.post_repo.find_by_id(post_id)
        if not post:
            raise NotFoundError("Post not found")
        poster = await self.account_repo.find_by_id(post.user_id) if post.user_id else None
        return post, poster

    async def list_posts_by_owner(self, account_id: str) -> List[Post]:
        """Posts created by an account, newest first"""
        return await self.post_repo.list_by_user(account_id)


@dataclass
class ClaimDetails:
    """Claim joined with its post and the accounts involved"""
    claim: Claim
    post: Optional[Post]
    poster: Optional[Account]
    claimant: Optional[Account]


Undo = Tuple[str, Callable[[], Awaitable[Any]]]


class ClaimService:
    """
    Claim lifecycle - creation, approval and denial

    Resolving a claim touches three records: the claim, its post and the
    claimant's inbox. With store transactions enabled all three writes share
    one session. Without them each applied write registers an undo action and
    a failure part-way rolls the earlier writes back before re-raising.
    """

    def __init__(
        self,
        claim_repository: IClaimRepository,
        post_repository: IPostRepository,
        account_repository: IAccountRepository,
        transaction_manager: ITransactionManager
    ):
        self.claim_repo = claim_repository
        self.post_repo = post_repository
        self.account_repo = account_repository
        self.accounts = AccountService(account_repository)
        self.transactions = transaction_manager

    async def create_claim(self, post_id: str, claimant: Principal) -> Claim:
        """Create a pending claim; one per (post, claimant)"""
        post = await self.post_repo.find_by_id(post_id)
        if not post:
            raise NotFoundError("Post not found")

        if claimant.is_admin:
            raise ForbiddenError("Only users can claim items")

        try:
            claim = await self.claim_repo.create(post_id=post.id, claimant_id=claimant.id)
        except DuplicateKeyError:
            raise ConflictError("Already claimed")

        logger.info(f"Account {claimant.id} claimed post {post.id} (claim {claim.id})")
        return claim

    async def approve_claim(self, claim_id: str) -> Claim:
        """Approve a claim, mark its post claimed and notify the claimant"""
        return await self._resolve(claim_id, ClaimStatus.APPROVED)

    async def deny_claim(self, claim_id: str) -> Claim:
        """Deny a claim and notify the claimant"""
        return await self._resolve(claim_id, ClaimStatus.DENIED)

    @staticmethod
    def notification_message(item: str, status: ClaimStatus) -> str:
        if status is ClaimStatus.APPROVED:
            return f'Your claim for "{item}" has been approved!'
        return f'Your claim for "{item}" was denied.'

    async def _resolve(self, claim_id: str, target: ClaimStatus) -> Claim:
        async with self.transactions.transaction() as session:
            claim = await self.claim_repo.find_by_id(claim_id, session=session)
            if not claim:
                raise NotFoundError("Claim not found")

            if not claim.can_transition_to(target):
                raise ConflictError(f"Claim already {claim.status.value}")

            post = await self.post_repo.find_by_id(claim.post_id, session=session)
            if not post:
                raise NotFoundError("Post not found")

            claimant = await self.account_repo.find_by_id(claim.claimant_id, session=session)
            if not claimant:
                raise NotFoundError("Claimant not found")

            if (target is ClaimStatus.APPROVED and claim.status is ClaimStatus.PENDING
                    and post.status is PostStatus.CLAIMED):
                logger.warning(f"Approving claim {claim.id} on post {post.id} which is already claimed")

            undo: List[Undo] = []
            try:
                await self._apply(claim, post, claimant, target, session, undo)
            except Exception:
                if session is None:
                    await self._compensate(claim.id, undo)
                raise

        logger.info(f"Claim {claim.id} {target.value} (post {post.id}, claimant {claimant.id})")
        return replace(claim, status=target)

    async def _apply(
        self,
        claim: Claim,
        post: Post,
        claimant: Account,
        target: ClaimStatus,
        session: Any,
        undo: List[Undo]
    ) -> None:
        swapped = await self.claim_repo.compare_and_set_status(
            claim.id, claim.status, target, session=session
        )
        if not swapped:
            logger.warning(f"Claim {claim.id} changed while being {target.value}")
            raise ConflictError("Claim was modified concurrently")
        if claim.status is not target:
            undo.append((
                "claim status",
                partial(self.claim_repo.compare_and_set_status, claim.id, target, claim.status)
            ))

        if target is ClaimStatus.APPROVED and post.status is not PostStatus.CLAIMED:
            if not await self.post_repo.update_status(post.id, PostStatus.CLAIMED, session=session):
                raise NotFoundError("Post not found")
            undo.append((
                "post status",
                partial(self._revert_post_status, claim.id, post.id, post.status)
            ))

        await self.accounts.append_notification(
            claimant.id, self.notification_message(post.item, target), session=session
        )

    async def _revert_post_status(self, claim_id: str, post_id: str, previous: PostStatus) -> bool:
        """
        Put a claimed post back to its previous status

        The post is left claimed while another claim on it is approved, and
        only a post that is still claimed is changed.
        """
        if await self.claim_repo.has_other_with_status(post_id, ClaimStatus.APPROVED, claim_id):
            logger.info(f"Post {post_id} kept claimed; another approved claim holds it")
            return False
        return await self.post_repo.compare_and_set_status(post_id, PostStatus.CLAIMED, previous)

    async def _compensate(self, claim_id: str, undo: List[Undo]) -> None:
        """Roll back applied writes, newest first"""
        for label, action in reversed(undo):
            try:
                await action()
                logger.info(f"Reverted {label} for claim {claim_id}")
            except Exception:
                logger.exception(f"Failed to revert {label} for claim {claim_id}")

    async def list_claims(self) -> List[ClaimDetails]:
        """All claims, newest first, with post, poster and claimant"""
        claims = await self.claim_repo.list_all()
        posts = await self.post_repo.find_many([c.post_id for c in claims])

        account_ids = [c.claimant_id for c in claims]
        account_ids += [p.user_id for p in posts.values() if p.user_id]
        accounts = await self.account_repo.find_many(account_ids)

        details = []
        for claim in claims:
            post = posts.get(claim.post_id)
            details.append(ClaimDetails(
                claim=claim,
                post=post,
                poster=accounts.get(post.user_id) if post and post.user_id else None,
                claimant=accounts.get(claim.claimant_id)
            ))
        return details

    async def claim_stats(self) -> ClaimStats:
        """Post count plus pending and resolved claim counts"""
        return ClaimStats(
            total_posts=await self.post_repo.count(),
            pending_claims=await self.claim_repo.count_by_status([ClaimStatus.PENDING]),
            resolved_claims=await self.claim_repo.count_by_status(
                [ClaimStatus.APPROVED, ClaimStatus.DENIED]
            )
        )
