from .auth import router as auth_router
from .posts import router as posts_router
from .claims import router as claims_router
from .profile import router as profile_router


__all__ = [
    # auth.py
    "auth_router",
    # posts.py
    "posts_router",
    # claims.py
    "claims_router",
    # profile.py
    "profile_router",
]
