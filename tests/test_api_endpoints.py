"""
Tests for API endpoints.
Run from project root: pytest tests/test_api_endpoints.py -v
"""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from auth import TokenIdentityProvider, create_access_token
from main import create_app
from services.session import LocalSessionCache, SessionContext

pytestmark = pytest.mark.integration


@pytest.fixture
def token():
    return create_access_token({"sub": "user-1", "email": "tesoureiro@clube.org"})


@pytest.fixture
def client(seeded, backend, token):
    """App apontando para o banco em memória já populado."""
    app = create_app(backend)
    with TestClient(app) as client:
        client.headers.update({"Authorization": f"Bearer {token}"})
        yield client


class TestAuth:
    def test_requires_token(self, seeded, backend):
        with TestClient(create_app(backend)) as anonymous:
            response = anonymous.get("/api/reports/summary")
        assert response.status_code == 401

    def test_rejects_bad_token(self, client):
        response = client.get("/api/reports/summary", headers={"Authorization": "Bearer lixo"})
        assert response.status_code == 401


class TestOperatorSession:
    def test_app_owns_a_session(self, seeded, backend):
        app = create_app(backend)
        assert app.state.store.session is app.state.session

    def test_lifespan_initializes_and_tears_down(self, seeded, backend, token):
        visited = []
        provider = TokenIdentityProvider(token)
        session = SessionContext(provider, LocalSessionCache(), visited.append)
        app = create_app(backend, session=session)

        with TestClient(app):
            assert session.user_id == "user-1"
            assert len(provider._listeners) == 1

        assert visited == []
        assert provider._listeners == []
        assert session.current_user is None

    def test_anonymous_operator_still_serves_requests(self, seeded, backend, token):
        visited = []
        session = SessionContext(TokenIdentityProvider(), LocalSessionCache(), visited.append)

        with TestClient(create_app(backend, session=session)) as client:
            response = client.get("/api/pathfinders", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert visited == ["/login"]


class TestReports:
    def test_summary(self, client, seeded):
        response = client.get("/api/reports/summary")
        assert response.status_code == 200

        data = response.json()
        assert data["total_orders"] == 2
        assert data["total_sales"] == pytest.approx(115.0)
        assert data["orders_by_status"]["pending"] == 2
        assert data["sales_by_payment_method"]["cash"] == pytest.approx(50.0)
        assert data["top_pathfinder"]["pathfinder"]["name"] == "Ana"
        assert data["selected_campaign"]["id"] == seeded.campaign.id

    def test_rankings(self, client):
        pathfinders = client.get("/api/reports/pathfinders").json()
        assert [p["pathfinder"]["name"] for p in pathfinders] == ["Ana", "Bruno"]

        products = client.get("/api/reports/products").json()
        assert products[0]["product"]["name"] == "Pizza"
        assert products[0]["total_quantity"] == 2

    def test_recent_orders(self, client):
        recent = client.get("/api/reports/recent-orders").json()
        assert [o["customer_name"] for o in recent] == ["Dora", "Carlos"]
        assert recent[0]["pathfinder_name"] == "Bruno"

    def test_export_csv(self, client):
        response = client.get("/api/reports/export.csv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "pedidos_Pizza_Solid" in response.headers["content-disposition"]
        lines = response.text.split("\n")
        assert len(lines) == 3
        assert '"R$ 65,00"' in lines[1] + lines[2]


class TestCampaignSelection:
    def test_select_all_campaigns(self, client):
        response = client.put("/api/campaigns/selected", json={"campaign_id": None})
        assert response.status_code == 200

        summary = client.get("/api/reports/summary").json()
        assert summary["total_orders"] == 3
        assert summary["selected_campaign"] is None

    def test_select_unknown_campaign(self, client):
        response = client.put("/api/campaigns/selected", json={"campaign_id": "CAMPAIGN#nope"})
        assert response.status_code == 404

    def test_create_active_campaign(self, client, seeded):
        response = client.post("/api/campaigns", json={
            "name": "Festa Junina",
            "start_date": "2026-06-01",
            "end_date": "2026-06-30",
            "status": "active",
        })
        assert response.status_code == 201
        new_id = response.json()["id"]

        listing = client.get("/api/campaigns").json()
        assert listing["active_campaign_id"] == new_id
        assert listing["selected_campaign_id"] == new_id
        statuses = {c["id"]: c["status"] for c in listing["campaigns"]}
        assert statuses[seeded.campaign.id] == "completed"


class TestOrders:
    def test_create_order_and_kitchen_queue(self, client, seeded):
        response = client.post("/api/orders", json={
            "pathfinder_id": seeded.bruno.id,
            "customer_name": "Fábio",
            "subtotal": 120.0,
            "discount": 0,
            "total_amount": 120.0,
            "payment_method": "pix-church",
            "items": [{
                "product_id": seeded.combo.id,
                "quantity": 2,
                "combo_flavors": ["Calabresa", None],
                "unit_price": 60.0,
                "total_price": 120.0,
            }],
        })
        assert response.status_code == 201
        order = response.json()
        assert order["user_id"] == "user-1"
        assert order["status"] == "pending"
        assert order["campaign_id"] == seeded.campaign.id

        queue = client.get("/api/kds/orders").json()
        assert [o["customer_name"] for o in queue] == ["Carlos", "Dora", "Fábio"]
        rows = queue[-1]["items_with_details"]
        assert rows[0]["product_name"] == "Combo Família ▼"
        assert rows[1]["quantity"] == 4
        assert rows[1]["flavor"] == "Calabresa"
        assert rows[2]["total_price"] == 0

    def test_invalid_payment_method_is_rejected(self, client, seeded):
        response = client.post("/api/orders", json={
            "pathfinder_id": seeded.bruno.id,
            "customer_name": "X",
            "subtotal": 1,
            "total_amount": 1,
            "payment_method": "cheque",
        })
        assert response.status_code == 422

    def test_status_flow_leaves_kitchen(self, client):
        queue = client.get("/api/kds/orders").json()
        first = queue[0]["id"]

        response = client.post(f"/api/orders/{first}/status", json={"status": "delivered"})
        assert response.status_code == 200
        assert response.json()["status"] == "delivered"

        remaining = [o["id"] for o in client.get("/api/kds/orders").json()]
        assert first not in remaining

    def test_update_unknown_order_is_404(self, client):
        response = client.patch("/api/orders/ORDER#nope", json={"notes": "x"})
        assert response.status_code == 404

    def test_delete_order(self, client):
        orders = client.get("/api/orders").json()
        target = orders[0]["id"]

        assert client.delete(f"/api/orders/{target}").status_code == 200
        assert target not in [o["id"] for o in client.get("/api/orders").json()]


class TestCatalog:
    def test_products_split_combos(self, client):
        data = client.get("/api/products").json()
        assert [p["name"] for p in data["combos"]] == ["Combo Família"]
        assert {p["name"] for p in data["products"]} == {"Pizza", "Refri"}

    def test_price_update_creates_history(self, client, seeded):
        response = client.patch(f"/api/products/{seeded.refri.id}", json={"price": 6.5, "price_note": "Fornecedor"})
        assert response.status_code == 200
        assert response.json()["price"] == 6.5

        history = client.get(f"/api/products/{seeded.refri.id}/price-history").json()
        assert len(history) == 1
        assert history[0]["notes"] == "Fornecedor"

    def test_pathfinder_crud(self, client):
        created = client.post("/api/pathfinders", json={"name": "Caio"}).json()
        assert created["id"].startswith("PATHFINDER#")

        renamed = client.patch(f"/api/pathfinders/{created['id']}", json={"name": "Caio Jr"}).json()
        assert renamed["name"] == "Caio Jr"

        names = [p["name"] for p in client.get("/api/pathfinders").json()]
        assert names == ["Ana", "Bruno", "Caio Jr"]

        assert client.delete(f"/api/pathfinders/{created['id']}").status_code == 200

    def test_reload(self, client):
        response = client.post("/api/reload")
        assert response.status_code == 200
        assert response.json()["orders"] == 3


class TestKitchenSocket:
    def test_socket_receives_updates(self, client, token, seeded):
        with client.websocket_connect(f"/ws/kitchen?token={token}") as ws:
            client.post(f"/api/orders/{next(iter(seeded.store.orders))}/status", json={"status": "ready"})
            assert ws.receive_text() == "update"

    def test_socket_without_token_is_closed(self, client):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/ws/kitchen") as ws:
                ws.receive_text()
