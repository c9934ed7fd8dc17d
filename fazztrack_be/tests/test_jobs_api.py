import pytest

from fazztrack.services import order_lifecycle


@pytest.fixture
def approved(db, make_order):
    order = make_order()
    order_lifecycle.approve_order(db, order)
    db.commit()
    return order


def create_job(client, headers, order, phase, user):
    return client.post(
        "/api/jobs/",
        json={"order_id": order.order_id, "phase": phase, "assigned_to": user.id},
        headers=headers,
    )


def test_job_flow_through_scan(client, approved, sales, crew, auth_headers):
    designer = crew["design"]
    resp = create_job(client, auth_headers(sales), approved, "design", designer)
    assert resp.status_code == 201, resp.text
    body = resp.json()
    token = body["job"]["qr_code_hash"]
    assert body["success"] is True
    assert body["qr_code_url"] == f"http://testserver/api/jobs/qr/{token}"

    order = client.get(f"/api/orders/{approved.order_id}", headers=auth_headers(sales)).json()
    assert order["status"] == "in_progress"

    scan = client.get(f"/api/jobs/qr/{token}", headers=auth_headers(designer))
    assert scan.status_code == 200
    assert scan.json()["actions"] == {"can_start": True, "can_complete": False}

    job_id = body["job"]["job_id"]
    resp = client.post(f"/api/jobs/{job_id}/start", headers=auth_headers(designer))
    assert resp.status_code == 200
    assert resp.json()["job"]["status"] == "in_progress"

    resp = client.post(f"/api/jobs/{job_id}/complete", headers=auth_headers(designer))
    assert resp.status_code == 200
    job = resp.json()["job"]
    assert job["status"] == "completed"
    assert job["duration"] == 0

    resp = create_job(client, auth_headers(sales), approved, "print", crew["print"])
    assert resp.status_code == 201


def test_production_job_before_design(client, approved, sales, crew, auth_headers):
    resp = create_job(client, auth_headers(sales), approved, "print", crew["print"])
    assert resp.status_code == 422
    assert resp.json()["error"] == {
        "code": "PRECONDITION_FAILED",
        "message": "Cannot create production jobs until design is completed",
    }


def test_wrong_role_is_rejected(client, approved, admin, crew, auth_headers):
    resp = create_job(client, auth_headers(admin), approved, "design", crew["sew"])
    assert resp.status_code == 422
    assert "'Designer' role" in resp.json()["error"]["message"]


def test_only_assignee_can_start(client, approved, sales, crew, make_user, auth_headers):
    job_id = create_job(client, auth_headers(sales), approved, "design", crew["design"]).json()["job"]["job_id"]
    intruder = make_user("Designer", "Designer")

    resp = client.post(f"/api/jobs/{job_id}/start", headers=auth_headers(intruder))
    assert resp.status_code == 403
    # Sales has no scanning access at all
    assert client.post(f"/api/jobs/{job_id}/start", headers=auth_headers(sales)).status_code == 403


def test_unknown_scan_token(client, admin, auth_headers):
    resp = client.get("/api/jobs/qr/deadbeef", headers=auth_headers(admin))
    assert resp.status_code == 404


def test_delete_and_override(client, approved, sales, admin, crew, auth_headers):
    job_id = create_job(client, auth_headers(sales), approved, "design", crew["design"]).json()["job"]["job_id"]

    resp = client.put(f"/api/jobs/{job_id}", json={"status": "completed"}, headers=auth_headers(admin))
    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"

    resp = client.delete(f"/api/jobs/{job_id}", headers=auth_headers(sales))
    assert resp.status_code == 422

    client.put(f"/api/jobs/{job_id}", json={"status": "pending"}, headers=auth_headers(admin))
    assert client.delete(f"/api/jobs/{job_id}", headers=auth_headers(sales)).status_code == 204
    assert client.get(f"/api/jobs/{job_id}", headers=auth_headers(admin)).status_code == 404


def test_design_upload_and_finalize(client, make_order, sales, designer, auth_headers):
    order = make_order()
    resp = client.post(
        "/api/designs/", json={"order_id": order.order_id, "designer_id": designer.id}, headers=auth_headers(sales)
    )
    assert resp.status_code == 201
    design_id = resp.json()["design_id"]

    resp = client.post(f"/api/designs/{design_id}/finalize", headers=auth_headers(designer))
    assert resp.status_code == 422

    resp = client.post(
        f"/api/designs/{design_id}/upload",
        files={"design_file": ("mockup.png", b"\x89PNG data", "image/png")},
        headers=auth_headers(designer),
    )
    assert resp.status_code == 200
    design_file = resp.json()["design_file"]
    assert design_file["file_name"] == "mockup.png"
    assert client.get(design_file["file_path"]).status_code == 200

    resp = client.post(f"/api/designs/{design_id}/finalize", headers=auth_headers(designer))
    assert resp.status_code == 200
    assert resp.json()["design"]["status"] == "finalized"

    # a finalized design is closed to its designer
    resp = client.put(f"/api/designs/{design_id}", json={"status": "new"}, headers=auth_headers(designer))
    assert resp.status_code == 403
    resp = client.delete(f"/api/designs/{design_id}", headers=auth_headers(sales))
    assert resp.status_code == 422
