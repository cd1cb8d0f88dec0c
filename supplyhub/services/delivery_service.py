# supplyhub/services/delivery_service.py
"""
Delivery-assignment lifecycle.

available -> assigned -> picked_up -> in_transit -> delivered -> completed,
with payment pending -> paid | failed recorded at completion.

Every status write is a compare-and-set on the status that was read, so two
writers racing on one assignment cannot both win. Acceptance goes further and
claims in a single conditional update: the first agent to hit an available,
unclaimed assignment gets it and everyone after receives a Conflict.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.client_session import ClientSession
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from supplyhub.app_config import Settings
from supplyhub.errors import Conflict, InvalidTransition, NotFound
from supplyhub.models.delivery_models import CreateAssignmentBody
from supplyhub.models.status import (
    COMPLETABLE,
    TRACKABLE,
    DeliveryStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    UserRole,
    ensure_advanceable,
    ensure_delivery_transition,
)
from supplyhub.mongo import ASSIGNMENTS, ORDERS, USERS, now_utc, oid, serialize_doc, unit_of_work
from supplyhub.services import pricing_service
from supplyhub.services.user_service import UserService

logger = logging.getLogger(__name__)

TRACKING_FIELDS = (
    "orderId", "orderNumber", "status", "paymentMethod", "paymentStatus",
    "deliveryFee", "orderTotal", "pickupAddress", "deliveryAddress",
    "pickupLatitude", "pickupLongitude", "deliveryLatitude", "deliveryLongitude",
    "currentLatitude", "currentLongitude", "estimatedDistance", "estimatedTime",
    "actualDeliveryTime", "createdAt", "updatedAt",
)


class DeliveryService:

    # =========================
    # PROJECTIONS
    # =========================
    @staticmethod
    def public(doc: Dict[str, Any]) -> Dict[str, Any]:
        return serialize_doc(doc)

    @staticmethod
    def tracking_view(doc: Dict[str, Any]) -> Dict[str, Any]:
        """Read-only view for the public tracking page; no agent or vendor ids."""
        view = {"id": str(doc["_id"])}
        for k in TRACKING_FIELDS:
            view[k] = doc.get(k)
        view["agentAssigned"] = bool(doc.get("agentId"))
        return view

    # =========================
    # CREATION
    # =========================
    @staticmethod
    def create_for_order(
        db: Database,
        settings: Settings,
        order: Dict[str, Any],
        pickup: Optional[Tuple[float, float]] = None,
        dropoff: Optional[Tuple[float, float]] = None,
        payment_method: PaymentMethod = PaymentMethod.CASH_ON_DELIVERY,
        notes: Optional[str] = None,
        session: Optional[ClientSession] = None,
    ) -> Tuple[Dict[str, Any], bool]:
        """
        Idempotent per order: returns (assignment, created). A second call for
        the same order returns the existing assignment with created=False.
        """
        order_id = str(order["_id"])
        distributor = db[USERS].find_one({"_id": ObjectId(order["distributorId"])}, session=session) or {}

        if pickup is None and settings.default_pickup_lat is not None and settings.default_pickup_lon is not None:
            pickup = (settings.default_pickup_lat, settings.default_pickup_lon)
        q = pricing_service.quote(settings, pickup, dropoff)

        now = now_utc()
        doc = {
            "orderNumber": order.get("orderNumber"),
            "distributorId": order["distributorId"],
            "vendorId": order["vendorId"],
            "agentId": None,
            "pickupAddress": distributor.get("companyName") or distributor.get("address")
                             or UserService.display_name(distributor),
            "deliveryAddress": order.get("deliveryAddress") or "",
            "pickupLatitude": pickup[0] if pickup else None,
            "pickupLongitude": pickup[1] if pickup else None,
            "deliveryLatitude": dropoff[0] if dropoff else None,
            "deliveryLongitude": dropoff[1] if dropoff else None,
            "currentLatitude": None,
            "currentLongitude": None,
            "status": DeliveryStatus.AVAILABLE.value,
            "paymentMethod": payment_method.value,
            "paymentStatus": PaymentStatus.PENDING.value,
            "deliveryFee": q.fee,
            "orderTotal": order.get("totalAmount"),
            "estimatedDistance": q.distance_km,
            "estimatedTime": q.minutes,
            "actualDeliveryTime": None,
            "notes": notes,
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            res = db[ASSIGNMENTS].update_one(
                {"orderId": order_id}, {"$setOnInsert": doc}, upsert=True, session=session
            )
            created = res.upserted_id is not None
        except DuplicateKeyError:
            # lost an upsert race to another writer for the same order
            created = False

        assignment = db[ASSIGNMENTS].find_one({"orderId": order_id}, session=session)
        if created:
            logger.info("Created delivery assignment %s for order %s", assignment["_id"], order_id)
        return assignment, created

    @staticmethod
    def create_manual(db: Database, settings: Settings, distributor: Dict[str, Any],
                      body: CreateAssignmentBody) -> Dict[str, Any]:
        uid = UserService.require_role(distributor, UserRole.DISTRIBUTOR)
        order = db[ORDERS].find_one({"_id": oid(body.orderId, "Order"), "distributorId": uid})
        if not order:
            raise NotFound("Order not found")
        if order.get("status") in (OrderStatus.CANCELLED.value, OrderStatus.DELIVERED.value):
            raise Conflict(f"Order is {order['status']}; no delivery can be created")

        pickup = (body.pickupLatitude, body.pickupLongitude) if body.pickupLatitude is not None else None
        dropoff = (body.deliveryLatitude, body.deliveryLongitude) if body.deliveryLatitude is not None else None
        assignment, created = DeliveryService.create_for_order(
            db, settings, order, pickup=pickup, dropoff=dropoff,
            payment_method=body.paymentMethod, notes=body.notes,
        )
        if not created:
            raise Conflict("A delivery assignment already exists for this order")
        return DeliveryService.public(assignment)

    # =========================
    # LISTINGS
    # =========================
    @staticmethod
    def list_available(db: Database, agent: Dict[str, Any]) -> List[Dict[str, Any]]:
        UserService.require_role(agent, UserRole.DELIVERY_AGENT)
        cur = db[ASSIGNMENTS].find({"status": DeliveryStatus.AVAILABLE.value}).sort([("createdAt", -1), ("_id", -1)])
        return [DeliveryService.public(d) for d in cur]

    @staticmethod
    def list_for_agent(db: Database, agent: Dict[str, Any]) -> List[Dict[str, Any]]:
        uid = UserService.require_role(agent, UserRole.DELIVERY_AGENT)
        cur = db[ASSIGNMENTS].find({"agentId": uid}).sort([("updatedAt", -1), ("_id", -1)])
        return [DeliveryService.public(d) for d in cur]

    @staticmethod
    def list_for_distributor(db: Database, distributor: Dict[str, Any]) -> List[Dict[str, Any]]:
        uid = UserService.require_role(distributor, UserRole.DISTRIBUTOR)
        cur = db[ASSIGNMENTS].find({"distributorId": uid}).sort([("createdAt", -1), ("_id", -1)])
        return [DeliveryService.public(d) for d in cur]

    # =========================
    # ACCEPT (first agent wins)
    # =========================
    @staticmethod
    def accept(db: Database, agent: Dict[str, Any], assignment_id: str) -> Dict[str, Any]:
        uid = UserService.require_role(agent, UserRole.DELIVERY_AGENT)
        _id = oid(assignment_id, "Delivery")
        now = now_utc()
        doc = db[ASSIGNMENTS].find_one_and_update(
            {"_id": _id, "status": DeliveryStatus.AVAILABLE.value, "agentId": None},
            {"$set": {
                "agentId": uid,
                "status": DeliveryStatus.ASSIGNED.value,
                "acceptedAt": now,
                "updatedAt": now,
            }},
            return_document=ReturnDocument.AFTER,
        )
        if doc:
            logger.info("Agent %s accepted delivery %s", uid, assignment_id)
            return DeliveryService.public(doc)

        existing = db[ASSIGNMENTS].find_one({"_id": _id}, {"agentId": 1, "status": 1})
        if not existing:
            raise NotFound("Delivery not found")
        logger.info("Agent %s lost claim on delivery %s (status=%s)", uid, assignment_id, existing.get("status"))
        if existing.get("agentId") == uid:
            raise Conflict("You have already accepted this delivery")
        raise Conflict("Delivery has already been claimed")

    # =========================
    # STATUS
    # =========================
    @staticmethod
    def _advance(db: Database, scope: Dict[str, Any], target: DeliveryStatus) -> Dict[str, Any]:
        ensure_advanceable(target)
        current = db[ASSIGNMENTS].find_one(scope)
        if not current:
            raise NotFound("Delivery not found")
        ensure_delivery_transition(current.get("status", ""), target.value)

        doc = db[ASSIGNMENTS].find_one_and_update(
            {"_id": current["_id"], "status": current["status"]},
            {"$set": {"status": target.value, "updatedAt": now_utc()}},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise Conflict("Delivery was updated concurrently; reload and retry")
        logger.info("Delivery %s: %s -> %s", current["_id"], current["status"], target.value)
        return DeliveryService.public(doc)

    @staticmethod
    def update_status(db: Database, agent: Dict[str, Any], assignment_id: str,
                      target: DeliveryStatus) -> Dict[str, Any]:
        uid = UserService.require_role(agent, UserRole.DELIVERY_AGENT)
        scope = {"_id": oid(assignment_id, "Delivery"), "agentId": uid}
        return DeliveryService._advance(db, scope, target)

    @staticmethod
    def override_status(db: Database, distributor: Dict[str, Any], assignment_id: str,
                        target: DeliveryStatus) -> Dict[str, Any]:
        uid = UserService.require_role(distributor, UserRole.DISTRIBUTOR)
        scope = {"_id": oid(assignment_id, "Delivery"), "distributorId": uid}
        return DeliveryService._advance(db, scope, target)

    # =========================
    # LOCATION PING
    # =========================
    @staticmethod
    def update_location(db: Database, agent: Dict[str, Any], assignment_id: str,
                        latitude: float, longitude: float) -> Dict[str, Any]:
        uid = UserService.require_role(agent, UserRole.DELIVERY_AGENT)
        _id = oid(assignment_id, "Delivery")
        doc = db[ASSIGNMENTS].find_one_and_update(
            {"_id": _id, "agentId": uid, "status": {"$in": [s.value for s in TRACKABLE]}},
            {"$set": {
                "currentLatitude": float(latitude),
                "currentLongitude": float(longitude),
                "updatedAt": now_utc(),
            }},
            return_document=ReturnDocument.AFTER,
        )
        if doc:
            return DeliveryService.public(doc)

        existing = db[ASSIGNMENTS].find_one({"_id": _id, "agentId": uid}, {"status": 1})
        if not existing:
            raise NotFound("Delivery not found")
        raise Conflict(f"Location cannot be updated while delivery is {existing.get('status')}")

    # =========================
    # COMPLETE WITH PAYMENT OUTCOME
    # =========================
    @staticmethod
    def complete(db: Database, settings: Settings, agent: Dict[str, Any], assignment_id: str,
                 payment_status: str, notes: Optional[str] = None) -> Dict[str, Any]:
        uid = UserService.require_role(agent, UserRole.DELIVERY_AGENT)
        outcome = PaymentStatus(payment_status)
        current = db[ASSIGNMENTS].find_one({"_id": oid(assignment_id, "Delivery"), "agentId": uid})
        if not current:
            raise NotFound("Delivery not found")
        status = current.get("status", "")
        if status not in {s.value for s in COMPLETABLE}:
            raise InvalidTransition("delivery", status, DeliveryStatus.COMPLETED.value)

        now = now_utc()
        upd: Dict[str, Any] = {
            "status": DeliveryStatus.COMPLETED.value,
            "paymentStatus": outcome.value,
            "actualDeliveryTime": now,
            "updatedAt": now,
        }
        if notes is not None:
            upd["notes"] = notes

        with unit_of_work(db, settings.mongo_transactions) as session:
            res = db[ASSIGNMENTS].update_one(
                {"_id": current["_id"], "agentId": uid, "status": status},
                {"$set": upd},
                session=session,
            )
            if not res.matched_count:
                raise Conflict("Delivery was updated concurrently; reload and retry")
            if outcome is PaymentStatus.PAID and ObjectId.is_valid(current.get("orderId", "")):
                db[ORDERS].update_one(
                    {"_id": ObjectId(current["orderId"]), "status": OrderStatus.SHIPPED.value},
                    {"$set": {"status": OrderStatus.DELIVERED.value, "updatedAt": now}},
                    session=session,
                )

        logger.info("Delivery %s completed by %s (payment=%s)", assignment_id, uid, outcome.value)
        return DeliveryService.public(db[ASSIGNMENTS].find_one({"_id": current["_id"]}))

    # =========================
    # PUBLIC TRACKING
    # =========================
    @staticmethod
    def tracking(db: Database, assignment_id: str) -> Dict[str, Any]:
        doc = db[ASSIGNMENTS].find_one({"_id": oid(assignment_id, "Delivery")})
        if not doc:
            raise NotFound("Delivery not found")
        return DeliveryService.tracking_view(doc)
