from decimal import Decimal

from supplyhub.client.cart import Cart


def product(pid, distributor, price, name=None):
    return {"id": pid, "name": name or pid, "price": price, "unit": "bags", "distributorId": distributor}


def test_add_merges_same_product():
    cart = Cart()
    cart.add_item(product("p1", "d1", "10.50"), 2)
    cart.add_item(product("p1", "d1", "10.50"), 1)
    assert len(cart) == 1
    assert cart.total_items() == 3
    assert cart.total_price() == Decimal("31.50")


def test_update_quantity_and_remove():
    cart = Cart()
    cart.add_item(product("p1", "d1", 10.5), 2)
    cart.add_item(product("p2", "d1", "1.25"), 4)
    cart.update_quantity("p1", 5)
    assert cart.total_price() == Decimal("57.50")
    cart.update_quantity("p2", 0)
    assert [ln.product_id for ln in cart.lines] == ["p1"]
    cart.remove_item("p1")
    cart.remove_item("missing")
    assert len(cart) == 0


def test_split_by_distributor():
    cart = Cart()
    cart.add_item(product("rice", "d1", "10.50"), 3, distributor_name="Premium Food")
    cart.add_item(product("oil", "d2", "12.99"), 1, distributor_name="Fresh Farms")
    cart.add_item(product("dal", "d1", "2.00"), 5, distributor_name="Premium Food")

    orders = cart.split_by_distributor("Downtown Market")
    assert [o["distributorId"] for o in orders] == ["d1", "d2"]

    first = orders[0]
    assert [i["productId"] for i in first["items"]] == ["rice", "dal"]
    assert first["totalAmount"] == "41.50"
    assert first["deliveryAddress"] == "Downtown Market"
    assert first["notes"] == "Order from Premium Food"
    assert orders[1]["items"] == [{"productId": "oil", "quantity": 1, "unitPrice": "12.99"}]
    assert sum(Decimal(o["totalAmount"]) for o in orders) == cart.total_price()


def test_split_without_address_omits_it():
    cart = Cart()
    cart.add_item(product("rice", "d1", "1"), 1)
    (only,) = cart.split_by_distributor()
    assert "deliveryAddress" not in only
    assert "notes" not in only


def test_clear():
    cart = Cart()
    cart.add_item(product("rice", "d1", "1"), 1)
    cart.clear()
    assert cart.split_by_distributor() == []
    assert cart.total_price() == Decimal("0.00")
