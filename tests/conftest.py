"""
Pytest configuration and shared fixtures.
"""

import asyncio
import sys
import os
from datetime import date
from types import SimpleNamespace

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import models  # noqa: F401  (registra as tabelas no Base)
from database import Base, make_engine
from services.backend import SqlBackend
from services.fundraiser import FundraiserStore


@pytest.fixture
def engine():
    """SQLite em memória, uma conexão só (compartilhada entre threads)."""
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def backend(engine):
    return SqlBackend(sessionmaker(autocommit=False, autoflush=False, bind=engine))


@pytest.fixture
def store(backend):
    return FundraiserStore(backend)


@pytest.fixture
def seeded(store):
    """
    Store com 2 desbravadores, pizza + refri + combo, 1 campanha ativa
    e 3 pedidos (2 na campanha, 1 fora dela).
    """
    async def seed():
        ana = await store.add_pathfinder("Ana")
        bruno = await store.add_pathfinder("Bruno")
        pizza = await store.add_product({"name": "Pizza", "price": 30.0, "category": "pizza", "flavors": ["Calabresa", "Frango"]})
        refri = await store.add_product({"name": "Refri", "price": 5.0, "category": "beverage"})
        combo = await store.add_product({
            "name": "Combo Família",
            "price": 60.0,
            "category": "combo",
            "combo_items": [
                {"product_id": pizza.id, "quantity": 2, "allow_flavor_selection": True},
                {"product_id": refri.id, "quantity": 1, "allow_flavor_selection": False},
            ],
        })
        campaign = await store.add_campaign({
            "name": "Pizza Solidária",
            "start_date": date(2026, 10, 1),
            "end_date": date(2026, 10, 31),
            "status": "active",
        })
        await store.add_order(
            {"pathfinder_id": ana.id, "customer_name": "Carlos", "subtotal": 65.0, "discount": 0.0,
             "total_amount": 65.0, "payment_method": "pix-qr"},
            [{"product_id": pizza.id, "quantity": 2, "flavor": "Calabresa", "unit_price": 30.0, "total_price": 60.0},
             {"product_id": refri.id, "quantity": 1, "unit_price": 5.0, "total_price": 5.0}],
        )
        await store.add_order(
            {"pathfinder_id": bruno.id, "customer_name": "Dora", "subtotal": 60.0, "discount": 10.0,
             "total_amount": 50.0, "payment_method": "cash"},
            [{"product_id": combo.id, "quantity": 1, "combo_flavors": ["Frango", None],
              "unit_price": 60.0, "total_price": 60.0}],
        )
        store.set_selected_campaign(None)
        await store.add_order(
            {"pathfinder_id": ana.id, "customer_name": "Eva", "subtotal": 5.0, "discount": 0.0,
             "total_amount": 5.0, "payment_method": "card", "status": "delivered"},
            [{"product_id": refri.id, "quantity": 1, "unit_price": 5.0, "total_price": 5.0}],
        )
        store.set_selected_campaign(campaign.id)
        return SimpleNamespace(
            store=store, ana=ana, bruno=bruno, pizza=pizza, refri=refri, combo=combo, campaign=campaign
        )

    return asyncio.run(seed())


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that go through the HTTP API"
    )
