from io import BytesIO

from openpyxl import load_workbook
from sqlmodel import select

from marketplace.constants.order_status import OrderStatus
from marketplace.models.order import Order
from marketplace.models.order_event import OrderEvent
from marketplace.services.order_service import transition_order

from support import load_order, payment_event, post_webhook


def _pay(client, order_id):
    r = post_webhook(client, payment_event("payment.succeeded", order_id))
    assert r.json()["status"] == "applied"


def test_admin_routes_require_admin(client, auth_headers, buyer):
    for url in (
        "/admin/orders",
        "/admin/users",
        "/admin/projects",
        "/admin/notifications",
        "/admin/analytics/overview",
    ):
        r = client.get(url, headers=auth_headers(buyer))
        assert r.status_code == 403
        assert r.json()["code"] == "FORBIDDEN"

    assert client.get("/admin/orders").status_code == 401


def test_admin_order_list_and_search(client, auth_headers, admin, buyer, placed_order):
    headers = auth_headers(admin)

    r = client.get("/admin/orders", headers=headers)

    assert r.status_code == 200
    rows = r.json()["orders"]
    assert len(rows) == 1
    assert rows[0]["orderId"] == placed_order["id"]
    assert rows[0]["buyerName"] == buyer.name
    assert rows[0]["projectTitle"] == "Landing page design"
    assert rows[0]["status"] == "PENDING"

    r = client.get("/admin/orders", params={"search": "landing"}, headers=headers)
    assert r.json()["pagination"]["total"] == 1

    r = client.get("/admin/orders", params={"search": "nothing-like-this"}, headers=headers)
    assert r.json()["orders"] == []

    r = client.get("/admin/orders", params={"status": "PAID"}, headers=headers)
    assert r.json()["orders"] == []


def test_admin_order_details(client, auth_headers, admin, buyer, seller, placed_order):
    r = client.get(f"/admin/orders/{placed_order['id']}", headers=auth_headers(admin))

    assert r.status_code == 200
    body = r.json()
    assert body["order"]["id"] == placed_order["id"]
    assert body["buyer"]["email"] == buyer.email
    assert body["seller"]["id"] == seller.id
    assert [e["eventType"] for e in body["events"]] == ["PENDING"]

    r = client.get("/admin/orders/missing", headers=auth_headers(admin))
    assert r.status_code == 404


def test_admin_refund_goes_through_gateway(client, db, gateway, auth_headers, admin, placed_order):
    order_id = placed_order["id"]
    _pay(client, order_id)

    r = client.post(f"/admin/orders/{order_id}/refund", headers=auth_headers(admin))

    assert r.status_code == 200
    assert r.json()["status"] == "REFUNDED"
    assert gateway.refunds == [("pi_fake_1", 250000)]

    with db.session() as s:
        event = s.exec(
            select(OrderEvent)
            .where(OrderEvent.order_id == order_id)
            .where(OrderEvent.event_type == "REFUNDED")
        ).one()
    assert event.created_by == f"user:{admin.id}"
    assert event.meta == {"refund_id": "re_fake_1", "refund_status": "processed"}


def test_refund_that_loses_the_race_is_recorded(
    client, db, gateway, auth_headers, admin, placed_order
):
    order_id = placed_order["id"]
    _pay(client, order_id)

    def seller_completes_first(payment_id):
        with db.session() as s:
            transition_order(s, s.get(Order, order_id), OrderStatus.COMPLETED)

    gateway.on_refund = seller_completes_first

    r = client.post(f"/admin/orders/{order_id}/refund", headers=auth_headers(admin))

    assert r.status_code == 500
    assert r.json()["code"] == "INTERNAL_FAULT"
    assert gateway.refunds == [("pi_fake_1", 250000)]
    assert load_order(db, order_id).status == "COMPLETED"

    with db.session() as s:
        event = s.exec(
            select(OrderEvent)
            .where(OrderEvent.order_id == order_id)
            .where(OrderEvent.event_type == "REFUND_UNAPPLIED")
        ).one()
    assert event.meta == {"refund_id": "re_fake_1", "refund_status": "processed"}
    assert event.created_by == f"user:{admin.id}"


def test_second_refund_does_not_reach_provider(client, gateway, auth_headers, admin, placed_order):
    order_id = placed_order["id"]
    _pay(client, order_id)
    headers = auth_headers(admin)

    client.post(f"/admin/orders/{order_id}/refund", headers=headers)
    r = client.post(f"/admin/orders/{order_id}/refund", headers=headers)

    assert r.status_code == 200
    assert r.json()["status"] == "REFUNDED"
    assert len(gateway.refunds) == 1


def test_admin_cannot_refund_unpaid_order(client, db, gateway, auth_headers, admin, placed_order):
    r = client.post(f"/admin/orders/{placed_order['id']}/refund", headers=auth_headers(admin))

    assert r.status_code == 400
    assert gateway.refunds == []
    assert load_order(db, placed_order["id"]).status == "PENDING"


def test_admin_complete_and_unknown_action(client, db, auth_headers, admin, placed_order):
    order_id = placed_order["id"]
    _pay(client, order_id)

    r = client.post(f"/admin/orders/{order_id}/complete", headers=auth_headers(admin))
    assert r.status_code == 200
    assert load_order(db, order_id).status == "COMPLETED"

    r = client.post(f"/admin/orders/{order_id}/ship", headers=auth_headers(admin))
    assert r.status_code == 422


def test_admin_user_list_and_search(client, auth_headers, admin, buyer, seller):
    headers = auth_headers(admin)

    r = client.get("/admin/users", headers=headers)

    assert r.status_code == 200
    assert r.json()["pagination"]["total"] == 3

    r = client.get("/admin/users", params={"search": "buyer"}, headers=headers)
    assert [u["email"] for u in r.json()["users"]] == [buyer.email]

    r = client.get("/admin/users", params={"role": "admin"}, headers=headers)
    assert [u["id"] for u in r.json()["users"]] == [admin.id]


def test_admin_suspends_and_restores_user(client, auth_headers, admin, buyer, project):
    headers = auth_headers(admin)

    r = client.post(f"/admin/users/{buyer.id}/suspend", headers=headers)

    assert r.status_code == 200
    assert r.json()["user"]["canLogin"] is False

    r = client.post("/orders", json={"itemId": project.id}, headers=auth_headers(buyer))
    assert r.status_code == 403

    r = client.get("/admin/users", params={"active": False}, headers=headers)
    assert [u["id"] for u in r.json()["users"]] == [buyer.id]

    r = client.post(f"/admin/users/{buyer.id}/unsuspend", headers=headers)
    assert r.json()["user"]["canLogin"] is True

    r = client.post("/orders", json={"itemId": project.id}, headers=auth_headers(buyer))
    assert r.status_code == 201


def test_admin_user_action_errors(client, auth_headers, admin):
    headers = auth_headers(admin)

    assert client.post("/admin/users/9999/activate", headers=headers).status_code == 404
    assert client.post(f"/admin/users/{admin.id}/ban", headers=headers).status_code == 422

    r = client.post(f"/admin/users/{admin.id}/deactivate", headers=headers)
    assert r.status_code == 400
    assert r.json()["code"] == "INVALID_OPERATION"


def test_admin_project_list_filters(client, auth_headers, admin, seller, make_project, placed_order):
    make_project(seller, title="Old brochure", is_active=False)
    headers = auth_headers(admin)

    r = client.get("/admin/projects", headers=headers)

    assert r.status_code == 200
    rows = r.json()["projects"]
    assert r.json()["pagination"]["total"] == 2
    by_title = {p["title"]: p for p in rows}
    assert by_title["Landing page design"]["orderCount"] == 1
    assert by_title["Landing page design"]["author"]["email"] == seller.email
    assert by_title["Old brochure"]["status"] == "inactive"

    r = client.get("/admin/projects", params={"status": "inactive"}, headers=headers)
    assert [p["title"] for p in r.json()["projects"]] == ["Old brochure"]

    r = client.get("/admin/projects", params={"search": "landing"}, headers=headers)
    assert [p["title"] for p in r.json()["projects"]] == ["Landing page design"]


def test_admin_deactivated_project_cannot_be_ordered(client, auth_headers, admin, buyer, project):
    headers = auth_headers(admin)

    r = client.post(f"/admin/projects/{project.id}/deactivate", headers=headers)

    assert r.status_code == 200
    assert r.json()["isActive"] is False
    assert client.get(f"/projects/{project.id}").status_code == 404

    r = client.post("/orders", json={"itemId": project.id}, headers=auth_headers(buyer))
    assert r.status_code == 404

    r = client.post(f"/admin/projects/{project.id}/activate", headers=headers)
    assert r.json()["isActive"] is True
    assert client.get(f"/projects/{project.id}").status_code == 200

    assert client.post("/admin/projects/9999/activate", headers=headers).status_code == 404


def test_admin_notifications_filter(client, auth_headers, admin, buyer, placed_order):
    _pay(client, placed_order["id"])
    headers = auth_headers(admin)

    r = client.get("/admin/notifications", headers=headers)
    assert r.json()["pagination"]["total"] == 2

    r = client.get("/admin/notifications", params={"user_id": buyer.id}, headers=headers)
    assert [n["title"] for n in r.json()["notifications"]] == ["Payment Successful"]

    r = client.get("/admin/notifications", params={"type": "PAYMENT_FAILED"}, headers=headers)
    assert r.json()["notifications"] == []


def test_analytics_counts_only_collected_revenue(
    client, auth_headers, admin, buyer, project, placed_order
):
    _pay(client, placed_order["id"])
    # a second order that never gets paid
    client.post("/orders", json={"itemId": project.id}, headers=auth_headers(buyer))
    headers = auth_headers(admin)

    r = client.get("/admin/analytics/overview", headers=headers)

    assert r.status_code == 200
    body = r.json()
    assert body["revenue"] == 2500
    assert body["paidOrders"] == 1
    assert body["avgOrderValue"] == 2500
    assert body["ordersByStatus"]["PAID"] == 1
    assert body["ordersByStatus"]["PENDING"] == 1
    assert body["ordersByStatus"]["REFUNDED"] == 0

    r = client.get("/admin/analytics/revenue-chart", headers=headers)
    assert [(d["revenue"], d["orders"]) for d in r.json()] == [(2500, 1)]

    r = client.get("/admin/analytics/top-projects", headers=headers)
    assert r.json() == [
        {"projectId": project.id, "title": project.title, "orders": 1, "revenue": 2500}
    ]


def test_analytics_export_is_a_workbook(client, auth_headers, admin, placed_order):
    _pay(client, placed_order["id"])

    r = client.get("/admin/analytics/export", headers=auth_headers(admin))

    assert r.status_code == 200
    assert r.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    wb = load_workbook(BytesIO(r.content))
    assert wb.sheetnames == ["Overview", "Revenue"]
    assert wb["Overview"]["A2"].value == "Total Revenue"
    assert wb["Overview"]["B2"].value == 2500
