# supplyhub/api/distributor_api.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends
from pymongo.database import Database

from supplyhub.api.deps import get_db, get_settings, require_distributor
from supplyhub.app_config import Settings
from supplyhub.errors import NotFound
from supplyhub.models.catalog_models import ProductCreateBody, ProductUpdateBody
from supplyhub.models.delivery_models import AssignmentStatusBody, CreateAssignmentBody
from supplyhub.models.order_models import OrderStatusBody
from supplyhub.services.catalog_service import CatalogService
from supplyhub.services.delivery_service import DeliveryService
from supplyhub.services.order_service import OrderService

router = APIRouter(prefix="/api/distributor", tags=["distributor"])


# ---------- Catalog ----------
@router.get("/products")
def list_products(user: Dict[str, Any] = Depends(require_distributor), db: Database = Depends(get_db)):
    items = CatalogService.list_products(db, user)
    return {"ok": True, "items": items, "total": len(items)}


@router.post("/products", status_code=201)
def create_product(body: ProductCreateBody, user: Dict[str, Any] = Depends(require_distributor),
                   db: Database = Depends(get_db)):
    return {"ok": True, "product": CatalogService.create_product(db, user, body)}


@router.put("/products/{product_id}")
def update_product(product_id: str, body: ProductUpdateBody,
                   user: Dict[str, Any] = Depends(require_distributor), db: Database = Depends(get_db)):
    return {"ok": True, "product": CatalogService.update_product(db, user, product_id, body)}


@router.delete("/products/{product_id}")
def delete_product(product_id: str, user: Dict[str, Any] = Depends(require_distributor),
                   db: Database = Depends(get_db)):
    if not CatalogService.delete_product(db, user, product_id):
        raise NotFound("Product not found")
    return {"ok": True, "deleted": product_id}


# ---------- Orders ----------
@router.get("/orders")
def list_orders(user: Dict[str, Any] = Depends(require_distributor), db: Database = Depends(get_db)):
    items = OrderService.list_orders_for_distributor(db, user)
    pending = sum(1 for o in items if o.get("status") == "pending")
    return {"ok": True, "items": items, "total": len(items), "pending": pending}


@router.patch("/orders/{order_id}")
def update_order_status(order_id: str, body: OrderStatusBody,
                        user: Dict[str, Any] = Depends(require_distributor),
                        db: Database = Depends(get_db), settings: Settings = Depends(get_settings)):
    order = OrderService.update_order_status(db, settings, user, order_id, body.status)
    return {"ok": True, "order": order}


# ---------- Deliveries ----------
@router.get("/deliveries")
def list_deliveries(user: Dict[str, Any] = Depends(require_distributor), db: Database = Depends(get_db)):
    items = DeliveryService.list_for_distributor(db, user)
    return {"ok": True, "items": items, "total": len(items)}


@router.post("/deliveries", status_code=201)
def create_delivery(body: CreateAssignmentBody, user: Dict[str, Any] = Depends(require_distributor),
                    db: Database = Depends(get_db), settings: Settings = Depends(get_settings)):
    return {"ok": True, "delivery": DeliveryService.create_manual(db, settings, user, body)}


@router.patch("/deliveries/{assignment_id}")
def override_delivery_status(assignment_id: str, body: AssignmentStatusBody,
                             user: Dict[str, Any] = Depends(require_distributor),
                             db: Database = Depends(get_db)):
    return {"ok": True, "delivery": DeliveryService.override_status(db, user, assignment_id, body.status)}
