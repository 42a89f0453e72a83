from sqlalchemy import Column, String, Text, DateTime, Date, Float, Integer, ForeignKey, JSON
from database import Base
from datetime import datetime
import uuid
import pytz


def _utcnow():
    # Gravamos UTC "naive", igual ao resto do banco
    return datetime.now(pytz.utc).replace(tzinfo=None)


def _key(prefix):
    """Gera a chave opaca no formato PREFIXO#<uuid>"""
    return lambda: f"{prefix}#{uuid.uuid4()}"


# ==========================================
#          DESBRAVADORES (VENDEDORES)
# ==========================================

class Pathfinder(Base):
    __tablename__ = "pathfinders"

    id = Column(String, primary_key=True, default=_key("PATHFINDER"))
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow)


# ==========================================
#        CATÁLOGO E PRODUTOS (CORE)
# ==========================================

class Product(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True, default=_key("PRODUCT"))
    name = Column(String, nullable=False)
    price = Column(Float, default=0.0)
    category = Column(String, default="other")  # pizza, pastry, ice-cream, beverage, combo, other
    flavors = Column(JSON, nullable=True)  # Ex: ["Calabresa", "Frango"]
    description = Column(Text, nullable=True)
    combo_items = Column(JSON, nullable=True)  # Ex: [{product_id: "PRODUCT#...", quantity: 2}]
    created_at = Column(DateTime, default=_utcnow)


class PriceHistory(Base):
    __tablename__ = "price_history"

    id = Column(String, primary_key=True, default=_key("PRICEHISTORY"))
    product_id = Column(String, ForeignKey("products.id", ondelete="CASCADE"), index=True)
    order_id = Column(String, nullable=True)
    price = Column(Float)
    effective_date = Column(DateTime, default=_utcnow)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow)


# ==========================================
#               CAMPANHAS
# ==========================================

class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(String, primary_key=True, default=_key("CAMPAIGN"))
    name = Column(String, nullable=False)
    start_date = Column(Date)
    end_date = Column(Date)
    status = Column(String, default="planned")  # planned, active, completed
    goal = Column(Float, nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow)


# ==========================================
#               PEDIDOS
# ==========================================

class Order(Base):
    __tablename__ = "orders"

    id = Column(String, primary_key=True, default=_key("ORDER"))
    user_id = Column(String, nullable=True)
    pathfinder_id = Column(String, ForeignKey("pathfinders.id", ondelete="CASCADE"), index=True)
    customer_name = Column(String)
    subtotal = Column(Float, default=0.0)
    discount = Column(Float, default=0.0)
    total_amount = Column(Float, default=0.0)
    payment_method = Column(String)  # card, cash, pix-church, pix-qr
    status = Column(String, default="pending")  # pending -> preparing -> ready -> delivered
    date = Column(Date)
    notes = Column(Text, nullable=True)
    campaign_id = Column(String, ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, default=_utcnow)


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String, primary_key=True, default=_key("ORDERITEM"))
    order_id = Column(String, ForeignKey("orders.id", ondelete="CASCADE"), index=True)
    product_id = Column(String, index=True)
    quantity = Column(Integer, default=1)
    flavor = Column(String, nullable=True)
    combo_flavors = Column(JSON, nullable=True)  # Sabor escolhido por item do combo (mesma ordem)
    unit_price = Column(Float, default=0.0)
    total_price = Column(Float, default=0.0)
    created_at = Column(DateTime, default=_utcnow)
