# supplyhub/services/catalog_service.py

import logging
import re
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument
from pymongo.database import Database

from supplyhub.errors import NotFound
from supplyhub.models.catalog_models import ProductCreateBody, ProductUpdateBody
from supplyhub.models.status import UserRole
from supplyhub.mongo import PRODUCTS, now_utc, oid, serialize_doc
from supplyhub.services.user_service import UserService

logger = logging.getLogger(__name__)


class CatalogService:

    @staticmethod
    def public(product: Dict[str, Any]) -> Dict[str, Any]:
        return serialize_doc(product)

    # ---------------------------------------------------------
    # DISTRIBUTOR SIDE
    # ---------------------------------------------------------
    @staticmethod
    def list_products(db: Database, distributor: Dict[str, Any]) -> List[Dict[str, Any]]:
        uid = UserService.require_role(distributor, UserRole.DISTRIBUTOR)
        cur = db[PRODUCTS].find({"distributorId": uid}).sort([("createdAt", -1), ("_id", -1)])
        return [CatalogService.public(p) for p in cur]

    @staticmethod
    def create_product(db: Database, distributor: Dict[str, Any], body: ProductCreateBody) -> Dict[str, Any]:
        uid = UserService.require_role(distributor, UserRole.DISTRIBUTOR)
        now = now_utc()
        doc = {
            "distributorId": uid,
            "name": body.name.strip(),
            "description": body.description,
            "category": body.category.strip(),
            # fixed-point string, 2 places
            "price": str(body.price),
            "stockQuantity": int(body.stockQuantity),
            "unit": body.unit.strip(),
            "minimumOrderQuantity": int(body.minimumOrderQuantity),
            "isActive": bool(body.isActive),
            "createdAt": now,
            "updatedAt": now,
        }
        res = db[PRODUCTS].insert_one(doc)
        doc["_id"] = res.inserted_id
        logger.info("Distributor %s created product %s", uid, res.inserted_id)
        return CatalogService.public(doc)

    @staticmethod
    def update_product(db: Database, distributor: Dict[str, Any], product_id: str,
                       body: ProductUpdateBody) -> Dict[str, Any]:
        uid = UserService.require_role(distributor, UserRole.DISTRIBUTOR)
        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        if "price" in changes:
            changes["price"] = str(changes["price"])
        changes["updatedAt"] = now_utc()

        doc = db[PRODUCTS].find_one_and_update(
            {"_id": oid(product_id, "Product"), "distributorId": uid},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFound("Product not found")
        return CatalogService.public(doc)

    @staticmethod
    def delete_product(db: Database, distributor: Dict[str, Any], product_id: str) -> bool:
        """
        Removes the product; order items keep their own price and quantity,
        so past orders stay readable.
        """
        uid = UserService.require_role(distributor, UserRole.DISTRIBUTOR)
        try:
            _id = oid(product_id, "Product")
        except NotFound:
            return False
        res = db[PRODUCTS].delete_one({"_id": _id, "distributorId": uid})
        if res.deleted_count:
            logger.info("Distributor %s deleted product %s", uid, product_id)
        return res.deleted_count > 0

    # ---------------------------------------------------------
    # VENDOR SIDE (read only, active products)
    # ---------------------------------------------------------
    @staticmethod
    def browse(db: Database, distributor_id: Optional[str] = None, category: Optional[str] = None,
               q: Optional[str] = None, limit: int = 200) -> List[Dict[str, Any]]:
        filt: Dict[str, Any] = {"isActive": True}
        if distributor_id:
            filt["distributorId"] = distributor_id
        if category:
            filt["category"] = {"$regex": f"^{re.escape(category)}$", "$options": "i"}
        if q:
            filt["name"] = {"$regex": re.escape(q), "$options": "i"}
        cur = db[PRODUCTS].find(filt).sort([("name", 1), ("_id", 1)]).limit(limit)
        return [CatalogService.public(p) for p in cur]
