"""
HTTP surface tests: routing, scoping and the error contract.
"""
import hashlib
import hmac
import json
import time

import pytest

from app.api import payments as payments_api


@pytest.fixture
def as_admin(workspace, auth_headers):
    return auth_headers(workspace.admin.subject_id, "admin")


@pytest.fixture
def as_employee(workspace, auth_headers):
    return auth_headers(workspace.employee_user.id, "employee")


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestAssetEndpoints:

    def test_admin_creates_and_lists_own_assets(self, client, workspace, as_admin):
        response = client.post(
            "/api/assets",
            json={"name": "Headset", "asset_type": "Returnable", "total_quantity": 2},
            headers=as_admin,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["available_quantity"] == 2
        assert body["owner_organization_id"] == workspace.organization.id

        names = [a["name"] for a in client.get("/api/assets", headers=as_admin).json()]
        assert names == ["Laptop", "Printer paper", "Headset"]

    def test_validation_error_contract(self, client, workspace, as_admin):
        response = client.patch(
            f"/api/assets/{workspace.laptop.id}",
            json={"total_quantity": 1},
            headers=as_admin,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_employee_cannot_create_assets(self, client, workspace, as_employee):
        response = client.post(
            "/api/assets",
            json={"name": "Headset", "asset_type": "Returnable", "total_quantity": 2},
            headers=as_employee,
        )

        assert response.status_code == 403

    def test_not_found_contract(self, client, workspace, as_employee):
        response = client.get("/api/assets/9999", headers=as_employee)

        assert response.status_code == 404
        assert response.json() == {"detail": "Asset 9999 not found", "code": "NOT_FOUND"}


class TestRequestLifecycle:

    def test_submit_approve_return_round_trip(self, client, workspace, as_admin, as_employee):
        laptop_id = workspace.laptop.id

        submitted = client.post("/api/requests", json={"asset_id": laptop_id, "note": "travel"}, headers=as_employee)
        assert submitted.status_code == 201
        request_id = submitted.json()["id"]

        pending = client.get("/api/requests", params={"status": "pending"}, headers=as_admin).json()
        assert [r["id"] for r in pending] == [request_id]

        approved = client.post(f"/api/requests/{request_id}/approve", headers=as_admin)
        assert approved.status_code == 200
        assert approved.json()["newly_affiliated"] is True
        assignment_id = approved.json()["assignment_id"]

        assert client.get(f"/api/assets/{laptop_id}", headers=as_admin).json()["available_quantity"] == 2
        employees = client.get("/api/organization/employees", headers=as_admin).json()
        assert [e["employee_id"] for e in employees] == [workspace.employee_user.id]
        assert "hashed_password" not in employees[0]

        mine = client.get("/api/assignments/my", headers=as_employee).json()
        assert [a["id"] for a in mine] == [assignment_id]
        assert mine[0]["can_return"] is True

        returned = client.post(f"/api/assignments/{assignment_id}/return", headers=as_employee)
        assert returned.status_code == 200
        assert returned.json()["status"] == "returned"
        assert client.get(f"/api/assets/{laptop_id}", headers=as_admin).json()["available_quantity"] == 3
        assert client.get(f"/api/requests/{request_id}", headers=as_employee).json()["status"] == "returned"

        again = client.post(f"/api/assignments/{assignment_id}/return", headers=as_employee)
        assert again.status_code == 409
        assert again.json()["code"] == "ALREADY_RETURNED"

    def test_capacity_exceeded_contract(self, client, make_organization, make_asset, make_employee, auth_headers):
        organization, admin = make_organization(employee_limit=1)
        asset = make_asset(organization.id)
        admin_headers = auth_headers(admin.subject_id, "admin")
        request_ids = []
        for _ in range(2):
            user, _ = make_employee()
            response = client.post("/api/requests", json={"asset_id": asset.id}, headers=auth_headers(user.id, "employee"))
            request_ids.append(response.json()["id"])

        assert client.post(f"/api/requests/{request_ids[0]}/approve", headers=admin_headers).status_code == 200
        refused = client.post(f"/api/requests/{request_ids[1]}/approve", headers=admin_headers)

        assert refused.status_code == 409
        assert refused.json()["code"] == "CAPACITY_EXCEEDED"

    def test_non_returnable_return_is_a_validation_error(self, client, workspace, as_admin, as_employee):
        request_id = client.post(
            "/api/requests", json={"asset_id": workspace.paper.id}, headers=as_employee
        ).json()["id"]
        assignment_id = client.post(f"/api/requests/{request_id}/approve", headers=as_admin).json()["assignment_id"]

        response = client.post(f"/api/assignments/{assignment_id}/return", headers=as_employee)

        assert response.status_code == 400
        assert response.json()["code"] == "NOT_RETURNABLE"

    def test_edit_reject_and_delete(self, client, workspace, as_admin, as_employee):
        request_id = client.post(
            "/api/requests", json={"asset_id": workspace.laptop.id}, headers=as_employee
        ).json()["id"]

        edited = client.patch(f"/api/requests/{request_id}", json={"note": "urgent"}, headers=as_employee)
        assert edited.json()["note"] == "urgent"
        assert client.patch(f"/api/requests/{request_id}", json={"note": " "}, headers=as_employee).status_code == 400

        assert client.post(f"/api/requests/{request_id}/reject", headers=as_admin).json()["status"] == "rejected"
        assert client.post(f"/api/requests/{request_id}/approve", headers=as_admin).status_code == 409

        assert client.delete(f"/api/requests/{request_id}", headers=as_employee).status_code == 204
        assert client.get("/api/requests/my", headers=as_employee).json() == []

    def test_other_admin_cannot_see_request(self, client, workspace, as_employee, make_organization, auth_headers):
        _, other_admin = make_organization(name="Globex")
        request_id = client.post(
            "/api/requests", json={"asset_id": workspace.laptop.id}, headers=as_employee
        ).json()["id"]

        response = client.get(f"/api/requests/{request_id}", headers=auth_headers(other_admin.subject_id, "admin"))

        assert response.status_code == 403

    def test_remove_employee_frees_capacity(self, client, workspace, as_admin, as_employee):
        request_id = client.post(
            "/api/requests", json={"asset_id": workspace.laptop.id}, headers=as_employee
        ).json()["id"]
        client.post(f"/api/requests/{request_id}/approve", headers=as_admin)
        assert client.get("/api/organization/capacity", headers=as_admin).json()["current_employee_count"] == 1

        removed = client.delete(f"/api/organization/employees/{workspace.employee_user.id}", headers=as_admin)

        assert removed.status_code == 200
        assert removed.json()["status"] == "inactive"
        capacity = client.get("/api/organization/capacity", headers=as_admin).json()
        assert capacity["current_employee_count"] == 0
        assert capacity["remaining"] == 5
        assert [a["status"] for a in client.get("/api/affiliations/my", headers=as_employee).json()] == ["inactive"]


class TestOrganizationEndpoints:

    def test_admin_without_organization_creates_one(self, client, make_user, auth_headers):
        admin = make_user(role="admin")
        headers = auth_headers(admin.id, "admin")

        created = client.post("/api/organization", json={"name": "Initech"}, headers=headers)

        assert created.status_code == 201
        assert created.json()["employee_limit"] == 5
        assert created.json()["subscription_tier"] == "basic"
        assert client.post("/api/organization", json={"name": "Again"}, headers=headers).status_code == 409
        assert client.get("/api/organization", headers=headers).json()["name"] == "Initech"


class TestPaymentEndpoints:

    def _event(self, organization_id, package_id, transaction_id="pi_http"):
        return {
            "transaction_id": transaction_id,
            "organization_id": organization_id,
            "package_id": package_id,
            "amount": "8.00",
        }

    def test_events_require_the_shared_secret(self, client, workspace, make_package, monkeypatch):
        monkeypatch.setattr(payments_api, "PAYMENT_EVENTS_SECRET", "s3cret")
        package = make_package()

        response = client.post(
            "/api/payments/events",
            json=self._event(workspace.organization.id, package.id),
            headers={"X-Payment-Events-Secret": "wrong"},
        )

        assert response.status_code == 401

    def test_event_applies_once(self, client, workspace, make_package, monkeypatch, as_admin):
        monkeypatch.setattr(payments_api, "PAYMENT_EVENTS_SECRET", "s3cret")
        package = make_package(name="standard", employee_limit=10)
        body = self._event(workspace.organization.id, package.id)
        headers = {"X-Payment-Events-Secret": "s3cret"}

        first = client.post("/api/payments/events", json=body, headers=headers)
        second = client.post("/api/payments/events", json=body, headers=headers)

        assert first.status_code == second.status_code == 200
        assert first.json() == {
            "transaction_id": "pi_http", "duplicate": False, "capacity_applied": True, "superseded": False,
        }
        assert second.json()["duplicate"] is True
        assert len(client.get("/api/payments", headers=as_admin).json()) == 1
        capacity = client.get("/api/organization/capacity", headers=as_admin).json()
        assert capacity["employee_limit"] == 10
        assert capacity["subscription_tier"] == "standard"

    def test_packages_are_public(self, client, make_package):
        make_package(name="basic", employee_limit=5, price="5.00")

        response = client.get("/api/packages")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["basic"]

    def test_stripe_webhook_verifies_signature(self, client, workspace, make_package, monkeypatch):
        secret = "whsec_test"
        monkeypatch.setattr(payments_api, "STRIPE_WEBHOOK_SECRET", secret)
        package = make_package(name="premium", employee_limit=20)
        payload = json.dumps({
            "id": "evt_1",
            "type": "checkout.session.completed",
            "data": {"object": {
                "id": "cs_test_1",
                "payment_intent": "pi_stripe",
                "amount_total": 1500,
                "metadata": {"organization_id": str(workspace.organization.id), "package_id": str(package.id)},
            }},
        })
        timestamp = int(time.time())
        signature = hmac.new(secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256).hexdigest()

        bad = client.post(
            "/api/payments/webhook",
            content=payload,
            headers={"Stripe-Signature": f"t={timestamp},v1={'0' * 64}", "Content-Type": "application/json"},
        )
        good = client.post(
            "/api/payments/webhook",
            content=payload,
            headers={"Stripe-Signature": f"t={timestamp},v1={signature}", "Content-Type": "application/json"},
        )

        assert bad.status_code == 400
        assert good.status_code == 200
        assert good.json()["capacity_applied"] is True

    def test_stripe_webhook_acknowledges_unusable_session(self, client, workspace, monkeypatch, caplog, as_admin):
        secret = "whsec_test"
        monkeypatch.setattr(payments_api, "STRIPE_WEBHOOK_SECRET", secret)
        payload = json.dumps({
            "id": "evt_no_metadata",
            "type": "checkout.session.completed",
            "data": {"object": {"id": "cs_test_2", "payment_intent": "pi_orphan", "amount_total": 1500}},
        })
        timestamp = int(time.time())
        signature = hmac.new(secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256).hexdigest()

        with caplog.at_level("ERROR", logger="app.api.payments"):
            response = client.post(
                "/api/payments/webhook",
                content=payload,
                headers={"Stripe-Signature": f"t={timestamp},v1={signature}", "Content-Type": "application/json"},
            )

        assert response.status_code == 200
        assert response.json() == {"received": True, "handled": False}
        assert any("evt_no_metadata" in record.getMessage() for record in caplog.records)
        assert client.get("/api/payments", headers=as_admin).json() == []
