# supplyhub/api/vendor_api.py
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from pymongo.database import Database

from supplyhub.api.deps import get_db, get_settings, require_vendor
from supplyhub.app_config import Settings
from supplyhub.models.order_models import CreateOrderBody
from supplyhub.models.user_models import ProfileUpdateBody
from supplyhub.services.catalog_service import CatalogService
from supplyhub.services.order_service import OrderService
from supplyhub.services.user_service import UserService

router = APIRouter(prefix="/api/vendor", tags=["vendor"])


@router.get("/distributors")
def distributors(user: Dict[str, Any] = Depends(require_vendor), db: Database = Depends(get_db)):
    return {"ok": True, "items": UserService.list_distributors(db)}


@router.get("/products")
def all_products(
    category: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    limit: int = Query(200, ge=1, le=500),
    user: Dict[str, Any] = Depends(require_vendor),
    db: Database = Depends(get_db),
):
    return {"ok": True, "items": CatalogService.browse(db, category=category, q=q, limit=limit)}


@router.get("/products/{distributor_id}")
def distributor_products(
    distributor_id: str,
    category: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    limit: int = Query(200, ge=1, le=500),
    user: Dict[str, Any] = Depends(require_vendor),
    db: Database = Depends(get_db),
):
    items = CatalogService.browse(db, distributor_id=distributor_id, category=category, q=q, limit=limit)
    return {"ok": True, "items": items}


@router.get("/orders")
def my_orders(user: Dict[str, Any] = Depends(require_vendor), db: Database = Depends(get_db)):
    items = OrderService.list_vendor_orders(db, user)
    return {"ok": True, "items": items, "total": len(items)}


@router.post("/orders", status_code=201)
def place_order(body: CreateOrderBody, user: Dict[str, Any] = Depends(require_vendor),
                db: Database = Depends(get_db), settings: Settings = Depends(get_settings)):
    return {"ok": True, "order": OrderService.create_vendor_order(db, settings, user, body)}


@router.get("/profile")
def profile(user: Dict[str, Any] = Depends(require_vendor)):
    return {"ok": True, "user": UserService.public(user)}


@router.put("/profile")
def update_profile(body: ProfileUpdateBody, user: Dict[str, Any] = Depends(require_vendor),
                   db: Database = Depends(get_db)):
    return {"ok": True, "user": UserService.public(UserService.update_profile(db, user, body))}
