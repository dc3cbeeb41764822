from storefront.cart import service as cart_service

def test_merge_cart_items_sums_quantities_by_product():
    server = [{"product_id": "A", "quantity": 1}, {"product_id": "B", "quantity": 2}]
    incoming = [{"product_id": "B", "quantity": 3}, {"id": "C", "quantity": 1}]
    merged = cart_service.merge_cart_items(server, incoming)
    assert merged == [
        {"product_id": "A", "quantity": 1},
        {"product_id": "B", "quantity": 5},
        {"product_id": "C", "quantity": 1},
    ]

def test_merge_cart_items_ignores_entries_without_product():
    assert cart_service.merge_cart_items(None, [{"quantity": 2}]) == []

def test_remove_cart_item():
    items = [{"product_id": "A", "quantity": 1}, {"product_id": "B", "quantity": 2}]
    assert cart_service.remove_cart_item(items, "A") == [{"product_id": "B", "quantity": 2}]

def test_price_cart_loads_products_once(monkeypatch):
    calls = []

    def fake_products_map(ids):
        ids = list(ids)
        calls.append(ids)
        return {"A": {"id": "A", "name": "Kibble", "price": 10000, "discount_percent": 20}}

    monkeypatch.setattr("storefront.cart.service.repository.get_products_map", fake_products_map)
    lines, subtotal = cart_service.price_cart([{"id": "A", "quantity": 2}, {"id": "Z", "quantity": 1}])

    assert calls == [["A", "Z"]]
    assert [li.unit_price for li in lines] == [8000, 0]
    assert subtotal == 16000

def test_price_cart_empty_does_not_hit_repository(monkeypatch):
    def boom(ids):
        raise AssertionError("repository should not be called")

    monkeypatch.setattr("storefront.cart.service.repository.get_products_map", boom)
    assert cart_service.price_cart([]) == ([], 0)
