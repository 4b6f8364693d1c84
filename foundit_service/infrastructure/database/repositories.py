"""
Repository implementations - Data access layer
"""
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection

from ...config import settings
from ...domain.models import (
    Account, Claim, ClaimStatus, Notification, Post, PostStatus, Role
)
from ...domain.repositories import IAccountRepository, IClaimRepository, IPostRepository


def to_object_id(value: str) -> Optional[ObjectId]:
    """Parse a hex id, returning None when malformed"""
    if not value or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccountRepository(IAccountRepository):
    """Account repository implementation using MongoDB"""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    def _doc_to_account(self, doc: Optional[dict]) -> Optional[Account]:
        """Convert MongoDB document to Account model"""
        if not doc:
            return None
        return Account(
            id=str(doc["_id"]),
            email=doc["email"],
            username=doc["username"],
            password_hash=doc["password_hash"],
            role=Role(doc.get("role", Role.USER.value)),
            notifications=[
                Notification(message=n["message"], date=n["date"])
                for n in doc.get("notifications", [])
            ],
            created_at=doc.get("created_at"),
        )

    async def create(self, email: str, username: str, password_hash: str,
                     role: Role, session: Any = None) -> Account:
        """Insert a new account"""
        doc = {
            "email": email,
            "username": username,
            "password_hash": password_hash,
            "role": role.value,
            "notifications": [],
            "created_at": utcnow(),
        }
        result = await self.collection.insert_one(doc, session=session)
        doc["_id"] = result.inserted_id
        return self._doc_to_account(doc)

    async def find_by_id(self, account_id: str, session: Any = None) -> Optional[Account]:
        """Find account by ID"""
        oid = to_object_id(account_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid}, session=session)
        return self._doc_to_account(doc)

    async def find_by_email(self, email: str, session: Any = None) -> Optional[Account]:
        """Find account by email"""
        doc = await self.collection.find_one({"email": email.lower()}, session=session)
        return self._doc_to_account(doc)

    async def find_many(self, account_ids: List[str], session: Any = None) -> Dict[str, Account]:
        """Find accounts by ID, keyed by ID"""
        oids = [oid for oid in (to_object_id(i) for i in set(account_ids)) if oid is not None]
        if not oids:
            return {}
        cursor = self.collection.find({"_id": {"$in": oids}}, session=session)
        accounts = [self._doc_to_account(doc) async for doc in cursor]
        return {account.id: account for account in accounts}

    async def append_notification(self, account_id: str, notification: Notification,
                                  session: Any = None) -> bool:
        """Push a notification onto the account inbox"""
        oid = to_object_id(account_id)
        if oid is None:
            return False

        push: Dict[str, Any] = {"$each": [{"message": notification.message, "date": notification.date}]}
        if settings.MAX_NOTIFICATIONS > 0:
            # Keep only the newest entries
            push["$slice"] = -settings.MAX_NOTIFICATIONS

        result = await self.collection.update_one(
            {"_id": oid},
            {"$push": {"notifications": push}},
            session=session
        )
        return result.matched_count == 1

    async def clear_notifications(self, account_id: str, session: Any = None) -> bool:
        """Empty the account inbox"""
        oid = to_object_id(account_id)
        if oid is None:
            return False
        result = await self.collection.update_one(
            {"_id": oid},
            {"$set": {"notifications": []}},
            session=session
        )
        return result.matched_count == 1


class PostRepository(IPostRepository):
    """Post repository implementation using MongoDB"""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    def _doc_to_post(self, doc: Optional[dict]) -> Optional[Post]:
        """Convert MongoDB document to Post model"""
        if not doc:
            return None
        user_id = doc.get("user_id")
        return Post(
            id=str(doc["_id"]),
            name=doc["name"],
            item=doc["item"],
            desc=doc["desc"],
            user_id=str(user_id) if user_id else None,
            status=PostStatus(doc.get("status", PostStatus.LOST.value)),
            contact=doc.get("contact") or "",
            location=doc.get("location"),
            image_url=doc.get("image_url"),
            date=doc.get("date"),
        )

    async def create(self, user_id: str, name: str, item: str, desc: str,
                     status: PostStatus, contact: str, location: Optional[str],
                     image_url: Optional[str], session: Any = None) -> Post:
        """Create a new post"""
        doc = {
            "name": name,
            "item": item,
            "desc": desc,
            "image_url": image_url,
            "status": status.value,
            "contact": contact,
            "location": location,
            "date": utcnow(),
            "user_id": to_object_id(user_id),
        }
        result = await self.collection.insert_one(doc, session=session)
        doc["_id"] = result.inserted_id
        return self._doc_to_post(doc)

    async def find_by_id(self, post_id: str, session: Any = None) -> Optional[Post]:
        """Find post by ID"""
        oid = to_object_id(post_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid}, session=session)
        return self._doc_to_post(doc)

    async def find_many(self, post_ids: List[str], session: Any = None) -> Dict[str, Post]:
        """Find posts by ID, keyed by ID"""
        oids = [oid for oid in (to_object_id(i) for i in set(post_ids)) if oid is not None]
        if not oids:
            return {}
        cursor = self.collection.find({"_id": {"$in": oids}}, session=session)
        posts = [self._doc_to_post(doc) async for doc in cursor]
        return {post.id: post for post in posts}

    async def list_all(self, session: Any = None) -> List[Post]:
        """All posts, newest first"""
        cursor = self.collection.find({}, session=session).sort("date", -1)
        return [self._doc_to_post(doc) async for doc in cursor]

    async def list_by_user(self, user_id: str, session: Any = None) -> List[Post]:
        """Posts created by a user, newest first"""
        oid = to_object_id(user_id)
        if oid is None:
            return []
        cursor = self.collection.find({"user_id": oid}, session=session).sort("date", -1)
        return [self._doc_to_post(doc) async for doc in cursor]

    async def update_status(self, post_id: str, status: PostStatus, session: Any = None) -> bool:
        """Set post status"""
        oid = to_object_id(post_id)
        if oid is None:
            return False
        result = await self.collection.update_one(
            {"_id": oid},
            {"$set": {"status": status.value}},
            session=session
        )
        return result.matched_count == 1

    async def compare_and_set_status(self, post_id: str, expected: PostStatus,
                                     new: PostStatus, session: Any = None) -> bool:
        """Set status to new only if it is currently expected"""
        oid = to_object_id(post_id)
        if oid is None:
            return False
        result = await self.collection.update_one(
            {"_id": oid, "status": expected.value},
            {"$set": {"status": new.value}},
            session=session
        )
        return result.matched_count == 1

    async def count(self, session: Any = None) -> int:
        """Total number of posts"""
        return await self.collection.count_documents({}, session=session)


class ClaimRepository(IClaimRepository):
    """Claim repository implementation using MongoDB"""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    def _doc_to_claim(self, doc: Optional[dict]) -> Optional[Claim]:
        """Convert MongoDB document to Claim model"""
        if not doc:
            return None
        return Claim(
            id=str(doc["_id"]),
            post_id=str(doc["post_id"]),
            claimant_id=str(doc["claimant_id"]),
            status=ClaimStatus(doc.get("status", ClaimStatus.PENDING.value)),
            claimed_at=doc.get("claimed_at"),
            resolved_at=doc.get("resolved_at"),
        )

    async def create(self, post_id: str, claimant_id: str, session: Any = None) -> Claim:
        """Insert a new pending claim"""
        doc = {
            "post_id": to_object_id(post_id),
            "claimant_id": to_object_id(claimant_id),
            "status": ClaimStatus.PENDING.value,
            "claimed_at": utcnow(),
            "resolved_at": None,
        }
        result = await self.collection.insert_one(doc, session=session)
        doc["_id"] = result.inserted_id
        return self._doc_to_claim(doc)

    async def find_by_id(self, claim_id: str, session: Any = None) -> Optional[Claim]:
        """Find claim by ID"""
        oid = to_object_id(claim_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid}, session=session)
        return self._doc_to_claim(doc)

    async def list_all(self, session: Any = None) -> List[Claim]:
        """All claims, newest first"""
        cursor = self.collection.find({}, session=session).sort("claimed_at", -1)
        return [self._doc_to_claim(doc) async for doc in cursor]

    async def compare_and_set_status(self, claim_id: str, expected: ClaimStatus,
                                     new: ClaimStatus, session: Any = None) -> bool:
        """Set status to new only if it is currently expected"""
        oid = to_object_id(claim_id)
        if oid is None:
            return False
        resolved_at = utcnow() if new.is_terminal else None
        result = await self.collection.update_one(
            {"_id": oid, "status": expected.value},
            {"$set": {"status": new.value, "resolved_at": resolved_at}},
            session=session
        )
        return result.matched_count == 1

    async def has_other_with_status(self, post_id: str, status: ClaimStatus,
                                    exclude_claim_id: str, session: Any = None) -> bool:
        """Whether another claim on the post is in the given status"""
        post_oid = to_object_id(post_id)
        if post_oid is None:
            return False
        query: Dict[str, Any] = {"post_id": post_oid, "status": status.value}
        exclude_oid = to_object_id(exclude_claim_id)
        if exclude_oid is not None:
            query["_id"] = {"$ne": exclude_oid}
        return await self.collection.count_documents(query, limit=1, session=session) > 0

    async def count_by_status(self, statuses: List[ClaimStatus], session: Any = None) -> int:
        """Count claims in any of the given statuses"""
        return await self.collection.count_documents(
            {"status": {"$in": [s.value for s in statuses]}},
            session=session
        )
