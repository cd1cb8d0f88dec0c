# supplyhub/services/user_service.py

import logging
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from supplyhub.errors import Conflict, Forbidden, NeedsRegistration, ValidationFailed
from supplyhub.identity import Identity
from supplyhub.models.status import UserRole
from supplyhub.models.user_models import ProfileUpdateBody, RegisterBody
from supplyhub.mongo import PRODUCTS, USERS, now_utc, serialize_doc

logger = logging.getLogger(__name__)

ROLE_LABELS = {
    UserRole.STREET_VENDOR: "street vendors",
    UserRole.DELIVERY_AGENT: "delivery agents",
    UserRole.DISTRIBUTOR: "distributors",
}


class UserService:

    # =========================
    # PROJECTIONS
    # =========================
    @staticmethod
    def public(user: Dict[str, Any]) -> Dict[str, Any]:
        d = serialize_doc(user) or {}
        d.pop("firebaseUid", None)
        return d

    @staticmethod
    def display_name(user: Dict[str, Any]) -> str:
        full = f"{user.get('firstName', '')} {user.get('lastName', '')}".strip()
        return user.get("companyName") or full or user.get("email") or "-"

    # =========================
    # LOOKUPS
    # =========================
    @staticmethod
    def find_by_identity(db: Database, identity: Identity) -> Optional[Dict[str, Any]]:
        return db[USERS].find_one({"firebaseUid": identity.uid})

    @staticmethod
    def get_by_identity(db: Database, identity: Identity) -> Dict[str, Any]:
        user = UserService.find_by_identity(db, identity)
        if not user:
            raise NeedsRegistration()
        return user

    @staticmethod
    def require_role(user: Dict[str, Any], role: UserRole) -> str:
        """Returns the caller's internal id when they hold ``role``."""
        if user.get("role") != role.value:
            raise Forbidden(f"Only {ROLE_LABELS[role]} can access this endpoint")
        return str(user["_id"])

    # =========================
    # REGISTER (idempotent upsert keyed by external identity)
    # =========================
    @staticmethod
    def register_or_fetch(db: Database, identity: Identity, body: RegisterBody) -> Tuple[Dict[str, Any], bool]:
        email = (body.email or identity.email or "").strip().lower()
        if not email:
            raise ValidationFailed("email is required")
        if identity.email and email != identity.email.strip().lower():
            raise ValidationFailed("email does not match the signed-in account")

        now = now_utc()
        doc = {
            "email": email,
            "firstName": body.firstName,
            "lastName": body.lastName,
            "phone": body.phone,
            "role": body.role.value,
            "companyName": body.companyName,
            "address": body.address,
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            res = db[USERS].update_one(
                {"firebaseUid": identity.uid},
                {"$setOnInsert": doc},
                upsert=True,
            )
        except DuplicateKeyError:
            # a concurrent register for the same identity won the upsert
            existing = db[USERS].find_one({"firebaseUid": identity.uid})
            if existing:
                return existing, False
            raise Conflict("Email is already registered to another account")

        created = res.upserted_id is not None
        user = db[USERS].find_one({"firebaseUid": identity.uid})
        if created:
            logger.info("Registered %s %s", user["role"], user["_id"])
        return user, created

    # =========================
    # PROFILE
    # =========================
    @staticmethod
    def update_profile(db: Database, user: Dict[str, Any], body: ProfileUpdateBody) -> Dict[str, Any]:
        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            return user
        changes["updatedAt"] = now_utc()
        return db[USERS].find_one_and_update(
            {"_id": user["_id"]},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )

    # =========================
    # DISTRIBUTOR DIRECTORY
    # =========================
    @staticmethod
    def list_distributors(db: Database) -> List[Dict[str, Any]]:
        rows = []
        for u in db[USERS].find({"role": UserRole.DISTRIBUTOR.value}).sort("companyName", 1):
            uid = str(u["_id"])
            rows.append({
                "id": uid,
                "companyName": u.get("companyName") or "",
                "name": UserService.display_name(u),
                "phone": u.get("phone") or "",
                "email": u.get("email") or "",
                "activeProducts": db[PRODUCTS].count_documents({"distributorId": uid, "isActive": True}),
            })
        return rows
