from datetime import date, timedelta

from fazztrack.models.order import Order


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_requires_token(client, order_data):
    resp = client.post("/api/orders/", json=order_data())
    assert resp.status_code == 401


def test_create_order_and_read_details(client, sales, order_data, auth_headers):
    resp = client.post("/api/orders/", json=order_data(), headers=auth_headers(sales))
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["status"] == "pending"
    assert body["created_by"] == sales.id
    assert len(body["tracking_id"]) == 10
    assert body["items"][0]["price"] == 15.99
    assert body["payments"][0]["status"] == "pending"

    resp = client.get(f"/api/orders/{body['order_id']}/details", headers=auth_headers(sales))
    assert resp.status_code == 200
    detail = resp.json()
    assert detail["financials"] == {"total_amount": 159.9, "total_paid": 0.0, "balance": 159.9}
    assert detail["job_progress"] == {"total": 0, "completed": 0, "in_progress": 0, "pending": 0}
    assert detail["order"]["order_id"] == body["order_id"]


def test_production_staff_cannot_create_orders(client, make_user, order_data, auth_headers):
    printer = make_user("Production", "Printer")
    resp = client.post("/api/orders/", json=order_data(), headers=auth_headers(printer))
    assert resp.status_code == 403
    assert resp.json() == {
        "success": False,
        "error": {"code": "NOT_AUTHORIZED", "message": "You are not authorized to perform order.create"},
    }


def test_order_needs_items_and_payments(client, sales, order_data, auth_headers):
    resp = client.post("/api/orders/", json=order_data(items=[]), headers=auth_headers(sales))
    assert resp.status_code == 422
    error = resp.json()["error"]
    assert error["code"] == "VALIDATION_FAILED"
    assert error["details"][0]["field"] == "items"


def test_design_due_date_not_in_past(client, sales, order_data, auth_headers):
    yesterday = (date.today() - timedelta(days=1)).isoformat()
    resp = client.post("/api/orders/", json=order_data(due_date_design=yesterday), headers=auth_headers(sales))
    assert resp.status_code == 422
    assert resp.json()["error"]["details"] == [
        {"field": "due_date_design", "message": "Design due date cannot be in the past"}
    ]


def test_delivery_needs_address(client, sales, order_data, auth_headers):
    resp = client.post("/api/orders/", json=order_data(delivery_method="delivery"), headers=auth_headers(sales))
    assert resp.status_code == 422
    assert resp.json()["error"]["details"][0]["field"] == "shipping_address"


def test_bad_item_leaves_nothing_behind(client, db, sales, order_data, products, auth_headers):
    shirt, _ = products
    items = [
        {"product_id": shirt.product_id, "quantity": 1, "price": 15.99},
        {"product_id": 9999, "quantity": 1, "price": 1},
    ]
    resp = client.post("/api/orders/", json=order_data(items=items), headers=auth_headers(sales))
    assert resp.status_code == 422
    assert resp.json()["error"]["details"][0]["field"] == "items.1.product_id"
    assert db.query(Order).count() == 0


def test_unknown_order_is_404(client, admin, auth_headers):
    resp = client.get("/api/orders/4242", headers=auth_headers(admin))
    assert resp.status_code == 404
    assert resp.json()["error"] == {"code": "NOT_FOUND", "message": "Order not found"}


def test_approve_then_cannot_delete(client, make_order, sales, auth_headers):
    order = make_order()
    resp = client.post(f"/api/orders/{order.order_id}/approve", headers=auth_headers(sales))
    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"

    resp = client.post(f"/api/orders/{order.order_id}/approve", headers=auth_headers(sales))
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "PRECONDITION_FAILED"

    resp = client.delete(f"/api/orders/{order.order_id}", headers=auth_headers(sales))
    assert resp.status_code == 422


def test_delete_pending_order(client, db, make_order, sales, auth_headers):
    order = make_order()
    resp = client.delete(f"/api/orders/{order.order_id}", headers=auth_headers(sales))
    assert resp.status_code == 204
    assert db.query(Order).count() == 0


def test_other_sales_cannot_edit(client, make_order, make_user, auth_headers):
    order = make_order()
    stranger = make_user("Sales")
    resp = client.put(f"/api/orders/{order.order_id}", json={"job_name": "Hijack"}, headers=auth_headers(stranger))
    assert resp.status_code == 403


def test_update_order_checks_dates(client, make_order, sales, auth_headers):
    order = make_order()
    late = (order.due_date_design - timedelta(days=1)).isoformat()
    resp = client.put(
        f"/api/orders/{order.order_id}", json={"due_date_production": late}, headers=auth_headers(sales)
    )
    assert resp.status_code == 422
    assert resp.json()["error"]["details"][0]["field"] == "due_date_production"

    resp = client.put(
        f"/api/orders/{order.order_id}",
        json={"job_name": "Club jerseys v2", "link_download": "https://files.example.com/art.zip"},
        headers=auth_headers(sales),
    )
    assert resp.status_code == 200
    assert resp.json()["job_name"] == "Club jerseys v2"
    assert resp.json()["link_download"] == "https://files.example.com/art.zip"


def test_status_override(client, make_order, admin, auth_headers):
    order = make_order()
    resp = client.post(
        f"/api/orders/{order.order_id}/status", json={"status": "qc_packaging"}, headers=auth_headers(admin)
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "qc_packaging"

    resp = client.post(f"/api/orders/{order.order_id}/status", json={"status": "lost"}, headers=auth_headers(admin))
    assert resp.status_code == 422


def test_item_management(client, make_order, products, sales, auth_headers):
    order = make_order()
    _, sticker = products
    headers = auth_headers(sales)
    only_item = order.items[0].order_item_id

    resp = client.delete(f"/api/items/{only_item}", headers=headers)
    assert resp.status_code == 422
    assert resp.json()["error"]["message"] == "Order must have at least one item"

    resp = client.post(
        f"/api/orders/{order.order_id}/items",
        json={"product_id": sticker.product_id, "quantity": 200, "price": 0.05},
        headers=headers,
    )
    assert resp.status_code == 201
    added = resp.json()["order_item_id"]

    resp = client.put(f"/api/items/{added}", json={"quantity": 300}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["quantity"] == 300

    assert client.delete(f"/api/items/{only_item}", headers=headers).status_code == 204
    items = client.get(f"/api/orders/{order.order_id}/items", headers=headers).json()
    assert [i["order_item_id"] for i in items] == [added]


def test_payment_approval_flow(client, make_order, sales, admin, auth_headers):
    order = make_order()
    payment_id = order.payments[0].payment_id

    resp = client.post(f"/api/payments/{payment_id}/approve", headers=auth_headers(sales))
    assert resp.status_code == 403

    resp = client.post(f"/api/payments/{payment_id}/approve", headers=auth_headers(admin))
    assert resp.status_code == 200
    assert resp.json()["payment"]["status"] == "approved"
    assert client.get(f"/api/orders/{order.order_id}", headers=auth_headers(admin)).json()["status"] == "approved"

    resp = client.delete(f"/api/payments/{payment_id}", headers=auth_headers(sales))
    assert resp.status_code == 422
    assert resp.json()["error"]["message"] == "Cannot delete approved payments"


def test_record_payment_with_receipt(client, make_order, sales, auth_headers):
    order = make_order()
    headers = auth_headers(sales)
    resp = client.post(
        "/api/files/upload", files={"file": ("receipt.pdf", b"%PDF-1.4", "application/pdf")}, headers=headers
    )
    assert resp.status_code == 201
    receipt = resp.json()
    assert receipt["file_path"].startswith("/media/attachments/")

    resp = client.post(
        "/api/payments/",
        json={
            "order_id": order.order_id,
            "type": "balance_payment",
            "amount": 109.9,
            "payment_date": date.today().isoformat(),
            "payment_method": "bank_transfer",
            "receipt_file_id": receipt["file_id"],
        },
        headers=headers,
    )
    assert resp.status_code == 201
    assert resp.json()["receipt_file_id"] == receipt["file_id"]
    assert resp.json()["status"] == "pending"


def test_update_order_cannot_clear_required_fields(client, make_order, sales, auth_headers):
    order = make_order()
    headers = auth_headers(sales)
    for field in ("job_name", "delivery_method", "due_date_design", "due_date_production", "estimated_delivery_date"):
        resp = client.put(f"/api/orders/{order.order_id}", json={field: None}, headers=headers)
        assert resp.status_code == 422, field
        assert resp.json()["error"]["details"][0]["field"] == field

    resp = client.put(f"/api/orders/{order.order_id}", json={"delivery_tracking_id": None}, headers=headers)
    assert resp.status_code == 200


def test_update_payment_cannot_clear_required_fields(client, make_order, sales, auth_headers):
    payment_id = make_order().payments[0].payment_id
    headers = auth_headers(sales)
    for field in ("type", "amount", "payment_date"):
        resp = client.put(f"/api/payments/{payment_id}", json={field: None}, headers=headers)
        assert resp.status_code == 422, field
        assert resp.json()["error"]["details"][0]["field"] == field

    resp = client.put(f"/api/payments/{payment_id}", json={"remarks": None}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["remarks"] is None
