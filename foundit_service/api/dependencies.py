"""
FastAPI dependencies
"""
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import logging

from ..domain.models import Principal, Role
from ..domain.repositories import (
    IAccountRepository, IClaimRepository, IPostRepository, ITransactionManager
)
from ..errors import ForbiddenError, UnauthorizedError
from ..infrastructure.auth import decode_token
from ..infrastructure.database.connection import MongoDB, get_mongodb
from ..infrastructure.database.repositories import (
    AccountRepository, ClaimRepository, PostRepository
)
from ..infrastructure.storage import ImageStorage, get_storage
from ..application.services import AccountService, AuthService, ClaimService, PostService

logger = logging.getLogger(__name__)

# Security scheme; missing headers are reported by get_current_principal
security = HTTPBearer(auto_error=False)


async def get_account_repository(db: MongoDB = Depends(get_mongodb)) -> IAccountRepository:
    """Get account repository dependency"""
    return AccountRepository(db.accounts_collection)


async def get_post_repository(db: MongoDB = Depends(get_mongodb)) -> IPostRepository:
    """Get post repository dependency"""
    return PostRepository(db.posts_collection)


async def get_claim_repository(db: MongoDB = Depends(get_mongodb)) -> IClaimRepository:
    """Get claim repository dependency"""
    return ClaimRepository(db.claims_collection)


async def get_transaction_manager(db: MongoDB = Depends(get_mongodb)) -> ITransactionManager:
    """Get transaction manager dependency"""
    return db


async def get_auth_service(
    account_repo: IAccountRepository = Depends(get_account_repository)
) -> AuthService:
    """Get auth service dependency"""
    return AuthService(account_repo)


async def get_account_service(
    account_repo: IAccountRepository = Depends(get_account_repository)
) -> AccountService:
    """Get account service dependency"""
    return AccountService(account_repo)


async def get_post_service(
    post_repo: IPostRepository = Depends(get_post_repository),
    account_repo: IAccountRepository = Depends(get_account_repository),
    storage: ImageStorage = Depends(get_storage)
) -> PostService:
    """Get post service dependency"""
    return PostService(post_repo, account_repo, storage)


async def get_claim_service(
    claim_repo: IClaimRepository = Depends(get_claim_repository),
    post_repo: IPostRepository = Depends(get_post_repository),
    account_repo: IAccountRepository = Depends(get_account_repository),
    transactions: ITransactionManager = Depends(get_transaction_manager)
) -> ClaimService:
    """Get claim service dependency"""
    return ClaimService(claim_repo, post_repo, account_repo, transactions)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Principal:
    """
    Get the authenticated principal from the bearer token

    Raises:
        UnauthorizedError: If no token was sent
        ForbiddenError: If the token is invalid or expired
    """
    if not credentials or not credentials.credentials:
        raise UnauthorizedError("Access token required")

    payload = decode_token(credentials.credentials)
    if not payload:
        raise ForbiddenError("Invalid token")

    try:
        role = Role(payload.get("role"))
    except ValueError:
        raise ForbiddenError("Invalid token")

    return Principal(
        id=payload["sub"],
        email=payload.get("email", ""),
        username=payload.get("username", ""),
        role=role
    )


async def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Get the authenticated principal, requiring the admin role"""
    if not principal.is_admin:
        logger.warning(f"Account {principal.id} denied admin access")
        raise ForbiddenError("Access denied")
    return principal
