"""Order API flow tests covering change tracking and the history endpoint."""

from decimal import Decimal
from pathlib import Path

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app import main as main_module
from app.core.security import create_access_token
from app.db import session as db_session
from app.db.base import Base
from app.main import app
from app.models import OrderHistory, Product, ProductModifier, User
from app.services import history_store


def _build_test_engine(db_file: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
    )


def _prepare_db(tmp_path: Path, monkeypatch, name: str):
    engine = _build_test_engine(tmp_path / name)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", testing_session_local)
    monkeypatch.setattr(main_module, "engine", engine)
    return testing_session_local


def _seed_catalog(session_local) -> dict[str, int]:
    with session_local() as db:
        waiter = User(username="mesero", first_name="Laura", last_name="Gómez", role="WAITER")
        pizza = Product(name="Pizza", price=Decimal("150.00"), is_pizza=True)
        soda = Product(name="Refresco", price=Decimal("25.00"))
        cheese = ProductModifier(name="Extra queso", price=Decimal("20.00"))
        db.add_all([waiter, pizza, soda, cheese])
        db.commit()
        return {"user": waiter.id, "pizza": pizza.id, "soda": soda.id, "cheese": cheese.id}


def _auth_headers(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': str(user_id)})}"}


def test_update_is_recorded_as_modified_and_added_items(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch, "history_flow.db")
    ids = _seed_catalog(session_local)
    headers = _auth_headers(ids["user"])

    with TestClient(app) as client:
        created = client.post(
            "/api/v1/orders",
            json={"order_type": "DINE_IN", "table_id": 4, "items": [{"product_id": ids["pizza"]}]},
            headers=headers,
        )
        assert created.status_code == 201
        order_id = created.json()["id"]
        pizza_item_id = created.json()["items"][0]["id"]

        updated = client.patch(
            f"/api/v1/orders/{order_id}",
            json={
                "items": [
                    {"id": pizza_item_id, "product_id": ids["pizza"], "modifier_ids": [ids["cheese"]]},
                    {"product_id": ids["soda"]},
                ]
            },
            headers=headers,
        )
        assert updated.status_code == 200

        history = client.get(f"/api/v1/orders/{order_id}/history", headers=headers)

    assert history.status_code == 200
    body = history.json()
    assert body["total_count"] == 2
    assert [record["operation"] for record in body["items"]] == ["INSERT", "UPDATE"]

    update_record = body["items"][1]
    modified = update_record["diff"]["items"]["modified"]
    assert [entry["id"] for entry in modified] == [pizza_item_id]
    assert modified[0]["before"]["modifiers"] == []
    assert modified[0]["after"]["modifiers"] == ["Extra queso"]
    added = update_record["diff"]["items"]["added"]
    assert [item["product_name"] for item in added] == ["Refresco"]
    assert update_record["snapshot"]["items"][1]["product_name"] == "Refresco"

    products = update_record["formatted_changes"]["Cambios en productos"]
    assert products["Productos agregados"] == ["Refresco"]
    assert products["Productos modificados"][0]["después"] == "Pizza - Modificadores: Extra queso"
    assert update_record["changed_by_user"]["display_name"] == "Laura Gómez"
    assert update_record["operation_label"] == "Orden modificada"


def test_no_op_update_writes_no_history(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch, "history_noop.db")
    ids = _seed_catalog(session_local)
    headers = _auth_headers(ids["user"])

    with TestClient(app) as client:
        created = client.post(
            "/api/v1/orders",
            json={"notes": "Sin cebolla", "items": [{"product_id": ids["pizza"]}]},
            headers=headers,
        )
        order_id = created.json()["id"]
        item_id = created.json()["items"][0]["id"]
        client.patch(
            f"/api/v1/orders/{order_id}",
            json={"notes": "Sin cebolla", "items": [{"id": item_id, "product_id": ids["pizza"]}]},
            headers=headers,
        )
        history = client.get(f"/api/v1/orders/{order_id}/history", headers=headers)

    assert history.json()["total_count"] == 1


def test_preparation_status_and_delete_are_tracked(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch, "history_delete.db")
    ids = _seed_catalog(session_local)
    headers = _auth_headers(ids["user"])

    with TestClient(app) as client:
        created = client.post("/api/v1/orders", json={"items": [{"product_id": ids["soda"]}]}, headers=headers)
        order_id = created.json()["id"]
        item_id = created.json()["items"][0]["id"]

        status_response = client.patch(
            f"/api/v1/orders/items/{item_id}/preparation-status",
            json={"preparation_status": "READY"},
            headers=headers,
        )
        assert status_response.status_code == 200
        delete_response = client.delete(f"/api/v1/orders/{order_id}", headers=headers)
        assert delete_response.status_code == 204

        missing = client.get(f"/api/v1/orders/{order_id}", headers=headers)
        history = client.get(f"/api/v1/orders/{order_id}/history", headers=headers)

    assert missing.status_code == 404
    records = history.json()["items"]
    assert [record["operation"] for record in records] == ["INSERT", "UPDATE", "DELETE"]
    assert records[1]["diff"]["items"]["modified"][0]["changes"] == ["preparationStatus"]
    assert records[1]["formatted_changes"]["Cambios en productos"]["Productos modificados"][0]["Estado de preparación"] == {
        "anterior": "Pendiente",
        "nuevo": "Listo",
    }
    assert records[2]["diff"]["items"]["removed"][0]["product_name"] == "Refresco"
    assert records[2]["formatted_changes"]["Resumen"] == "Orden eliminada con 1 producto"


def test_history_write_failure_does_not_fail_the_order(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch, "history_write_failure.db")
    ids = _seed_catalog(session_local)

    def broken_row(record):
        return OrderHistory(order_id=None, operation=record.operation, snapshot=None)

    monkeypatch.setattr(history_store, "record_to_row", broken_row)

    with TestClient(app) as client:
        created = client.post(
            "/api/v1/orders",
            json={"items": [{"product_id": ids["pizza"]}]},
            headers=_auth_headers(ids["user"]),
        )

    assert created.status_code == 201
    with session_local() as db:
        assert db.query(OrderHistory).count() == 0


def test_history_limit_is_capped_and_paged(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch, "history_paging.db")
    ids = _seed_catalog(session_local)
    headers = _auth_headers(ids["user"])

    with TestClient(app) as client:
        created = client.post("/api/v1/orders", json={"items": []}, headers=headers)
        order_id = created.json()["id"]
        for table_id in range(1, 4):
            client.patch(f"/api/v1/orders/{order_id}", json={"table_id": table_id}, headers=headers)

        capped = client.get(f"/api/v1/orders/{order_id}/history?limit=500", headers=headers)
        second_page = client.get(f"/api/v1/orders/{order_id}/history?page=2&limit=3", headers=headers)

    assert capped.json()["limit"] == 50
    assert capped.json()["total_count"] == 4
    assert second_page.json()["has_next_page"] is False
    assert second_page.json()["items"][0]["formatted_changes"]["Mesa"]["nuevo"] == "Mesa 3"


def test_history_requires_authentication(tmp_path: Path, monkeypatch) -> None:
    _prepare_db(tmp_path, monkeypatch, "history_auth.db")

    with TestClient(app) as client:
        response = client.get("/api/v1/orders/1/history")

    assert response.status_code in {401, 403}
