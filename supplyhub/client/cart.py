# supplyhub/client/cart.py
"""
Vendor shopping cart.

A cart can hold products from several distributors; checkout turns it into one
order request per distributor.
"""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from supplyhub.models.money import line_total, sum_money, to_money


@dataclass
class CartLine:
    product_id: str
    name: str
    unit_price: Decimal
    quantity: int
    unit: str
    distributor_id: str
    distributor_name: str = ""

    @property
    def total(self) -> Decimal:
        return line_total(self.quantity, self.unit_price)


class Cart:
    def __init__(self):
        self._lines: "OrderedDict[str, CartLine]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def add_item(self, product: Dict[str, Any], quantity: int = 1, distributor_name: str = "") -> CartLine:
        """Adds a catalog product; adding one already present bumps its quantity."""
        pid = str(product["id"])
        line = self._lines.get(pid)
        if line:
            line.quantity += quantity
            return line
        line = CartLine(
            product_id=pid,
            name=product.get("name", ""),
            unit_price=to_money(product["price"]),
            quantity=quantity,
            unit=product.get("unit", ""),
            distributor_id=str(product["distributorId"]),
            distributor_name=distributor_name,
        )
        self._lines[pid] = line
        return line

    def remove_item(self, product_id: str) -> None:
        self._lines.pop(product_id, None)

    def update_quantity(self, product_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove_item(product_id)
            return
        if product_id in self._lines:
            self._lines[product_id].quantity = quantity

    def clear(self) -> None:
        self._lines.clear()

    def total_items(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def total_price(self) -> Decimal:
        return sum_money(line.total for line in self._lines.values())

    def split_by_distributor(self, delivery_address: Optional[str] = None) -> List[Dict[str, Any]]:
        return partition_lines(self.lines, delivery_address)


def partition_lines(lines: List[CartLine], delivery_address: Optional[str] = None) -> List[Dict[str, Any]]:
    """One order-creation payload per distributor, in first-seen order."""
    groups: "OrderedDict[str, List[CartLine]]" = OrderedDict()
    for line in lines:
        groups.setdefault(line.distributor_id, []).append(line)

    payloads = []
    for distributor_id, group in groups.items():
        payload: Dict[str, Any] = {
            "distributorId": distributor_id,
            "items": [
                {"productId": ln.product_id, "quantity": ln.quantity, "unitPrice": str(ln.unit_price)}
                for ln in group
            ],
            "totalAmount": str(sum_money(ln.total for ln in group)),
        }
        if delivery_address:
            payload["deliveryAddress"] = delivery_address
        name = group[0].distributor_name
        if name:
            payload["notes"] = f"Order from {name}"
        payloads.append(payload)
    return payloads
