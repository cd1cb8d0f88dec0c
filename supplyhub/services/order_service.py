# supplyhub/services/order_service.py

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from supplyhub.app_config import Settings
from supplyhub.errors import Conflict, DomainError, NotFound, ValidationFailed
from supplyhub.models.money import line_total, sum_money
from supplyhub.models.order_models import CreateOrderBody
from supplyhub.models.status import OrderStatus, UserRole, ensure_order_transition
from supplyhub.mongo import (
    ASSIGNMENTS,
    ORDER_ITEMS,
    ORDERS,
    PRODUCTS,
    USERS,
    now_utc,
    oid,
    serialize_doc,
    unit_of_work,
)
from supplyhub.services.delivery_service import DeliveryService
from supplyhub.services.user_service import UserService

logger = logging.getLogger(__name__)

ORDER_NUMBER_ATTEMPTS = 3


class OrderService:

    # =========================
    # ID GENERATOR
    # =========================
    @staticmethod
    def generate_order_number(now: Optional[datetime] = None) -> str:
        # VO-YYYYMMDD-<12 hex>; the unique index on orderNumber is the real guarantee
        now = now or datetime.now(timezone.utc)
        return f"VO-{now.strftime('%Y%m%d')}-{uuid.uuid4().hex[:12].upper()}"

    # =========================
    # CREATE
    # =========================
    @staticmethod
    def _priced_lines(db: Database, distributor_id: str, body: CreateOrderBody) -> List[Dict[str, Any]]:
        if not body.items:
            raise ValidationFailed("No items provided")

        ids = []
        for it in body.items:
            if not ObjectId.is_valid(it.productId):
                raise NotFound(f"Product not found: {it.productId}")
            ids.append(ObjectId(it.productId))
        products = {p["_id"]: p for p in db[PRODUCTS].find({"_id": {"$in": ids}})}

        lines = []
        for it, pid in zip(body.items, ids):
            p = products.get(pid)
            if not p or p.get("distributorId") != distributor_id:
                raise NotFound(f"Product not found for this distributor: {it.productId}")
            if not p.get("isActive", True):
                raise ValidationFailed(f"Product is not available: {p.get('name')}")
            moq = int(p.get("minimumOrderQuantity") or 1)
            if it.quantity < moq:
                raise ValidationFailed(f"Minimum order for {p.get('name')} is {moq} {p.get('unit', '')}".strip())
            unit_price = p.get("price")
            lines.append({
                "productId": str(pid),
                "productName": p.get("name"),
                "unit": p.get("unit"),
                "quantity": int(it.quantity),
                "unitPrice": str(line_total(1, unit_price)),
                "totalPrice": str(line_total(it.quantity, unit_price)),
            })
        return lines

    @staticmethod
    def create_vendor_order(db: Database, settings: Settings, vendor: Dict[str, Any],
                            body: CreateOrderBody) -> Dict[str, Any]:
        vendor_id = UserService.require_role(vendor, UserRole.STREET_VENDOR)

        distributor = None
        if ObjectId.is_valid(body.distributorId):
            distributor = db[USERS].find_one({"_id": ObjectId(body.distributorId),
                                              "role": UserRole.DISTRIBUTOR.value})
        if not distributor:
            raise NotFound("Distributor not found")
        distributor_id = str(distributor["_id"])

        address = (body.deliveryAddress or vendor.get("address") or "").strip()
        if not address:
            raise ValidationFailed("deliveryAddress is required (or set an address on your profile)")

        lines = OrderService._priced_lines(db, distributor_id, body)
        total = sum_money(line["totalPrice"] for line in lines)

        now = now_utc()
        order = {
            "vendorId": vendor_id,
            "distributorId": distributor_id,
            "status": OrderStatus.PENDING.value,
            "totalAmount": str(total),
            "deliveryAddress": address,
            "estimatedDeliveryDate": body.estimatedDeliveryDate,
            "notes": body.notes,
            "createdAt": now,
            "updatedAt": now,
        }

        for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
            order_id = ObjectId()
            doc = {"_id": order_id, "orderNumber": OrderService.generate_order_number(now), **order}
            items = [{**line, "orderId": str(order_id)} for line in lines]
            try:
                OrderService._write_order(db, settings, doc, items)
            except DuplicateKeyError:
                if attempt == ORDER_NUMBER_ATTEMPTS:
                    raise Conflict("Could not allocate an order number; retry")
                logger.warning("Order number collision on %s, retrying", doc["orderNumber"])
                continue
            logger.info("Vendor %s placed order %s (%s) total=%s",
                        vendor_id, doc["orderNumber"], order_id, doc["totalAmount"])
            return OrderService.public(doc, items)
        raise Conflict("Could not allocate an order number; retry")

    @staticmethod
    def _write_order(db: Database, settings: Settings, doc: Dict[str, Any],
                     items: List[Dict[str, Any]]) -> None:
        with unit_of_work(db, settings.mongo_transactions) as session:
            try:
                db[ORDERS].insert_one(doc, session=session)
                db[ORDER_ITEMS].insert_many(items, session=session)
            except PyMongoError:
                if session is None:
                    OrderService._discard(db, doc["_id"])
                raise

    @staticmethod
    def _discard(db: Database, order_id: ObjectId) -> None:
        try:
            db[ORDER_ITEMS].delete_many({"orderId": str(order_id)})
            db[ORDERS].delete_one({"_id": order_id})
        except PyMongoError:
            logger.exception("Could not clean up partially written order %s", order_id)

    # =========================
    # READ
    # =========================
    @staticmethod
    def public(order: Dict[str, Any], items: Optional[List[Dict[str, Any]]] = None,
               assignment_id: Optional[str] = None) -> Dict[str, Any]:
        d = serialize_doc(order)
        if items is not None:
            d["items"] = [serialize_doc(i) for i in items]
        d["deliveryAssignmentId"] = assignment_id
        return d

    @staticmethod
    def _with_items(db: Database, orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        ids = [str(o["_id"]) for o in orders]
        items_by_order: Dict[str, List[Dict[str, Any]]] = {i: [] for i in ids}
        for it in db[ORDER_ITEMS].find({"orderId": {"$in": ids}}):
            items_by_order[it["orderId"]].append(it)
        assignment_by_order = {
            a["orderId"]: str(a["_id"])
            for a in db[ASSIGNMENTS].find({"orderId": {"$in": ids}}, {"orderId": 1})
        }
        return [
            OrderService.public(o, items_by_order[str(o["_id"])], assignment_by_order.get(str(o["_id"])))
            for o in orders
        ]

    @staticmethod
    def list_vendor_orders(db: Database, vendor: Dict[str, Any]) -> List[Dict[str, Any]]:
        vendor_id = UserService.require_role(vendor, UserRole.STREET_VENDOR)
        orders = list(db[ORDERS].find({"vendorId": vendor_id}).sort([("createdAt", -1), ("_id", -1)]))
        return OrderService._with_items(db, orders)

    @staticmethod
    def list_orders_for_distributor(db: Database, distributor: Dict[str, Any]) -> List[Dict[str, Any]]:
        uid = UserService.require_role(distributor, UserRole.DISTRIBUTOR)
        orders = list(db[ORDERS].find({"distributorId": uid}).sort([("createdAt", -1), ("_id", -1)]))
        return OrderService._with_items(db, orders)

    # =========================
    # STATUS (distributor only)
    # =========================
    @staticmethod
    def update_order_status(db: Database, settings: Settings, distributor: Dict[str, Any],
                            order_id: str, new_status: OrderStatus) -> Dict[str, Any]:
        uid = UserService.require_role(distributor, UserRole.DISTRIBUTOR)
        order = db[ORDERS].find_one({"_id": oid(order_id, "Order"), "distributorId": uid})
        if not order:
            raise NotFound("Order not found")
        target = ensure_order_transition(order.get("status", ""), OrderStatus(new_status).value)

        updated = db[ORDERS].find_one_and_update(
            {"_id": order["_id"], "status": order["status"]},
            {"$set": {"status": target.value, "updatedAt": now_utc()}},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise Conflict("Order was updated concurrently; reload and retry")
        logger.info("Order %s: %s -> %s", order_id, order["status"], target.value)

        assignment_id = None
        if target is OrderStatus.SHIPPED:
            # the status change stands even if the assignment cannot be created
            try:
                assignment, _ = DeliveryService.create_for_order(db, settings, updated)
                assignment_id = str(assignment["_id"])
            except (DomainError, PyMongoError):
                logger.warning("Auto-creating delivery for order %s failed", order_id, exc_info=True)

        if assignment_id is None:
            a = db[ASSIGNMENTS].find_one({"orderId": str(order["_id"])}, {"_id": 1})
            assignment_id = str(a["_id"]) if a else None
        return OrderService.public(updated, assignment_id=assignment_id)
