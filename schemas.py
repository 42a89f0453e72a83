from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Dict
import datetime as dt
from enum import Enum

# ==========================================
#        ENUMS (Valores aceitos pela API)
# ==========================================
# Os registros em memória guardam texto puro: um valor fora da lista
# (dado legado no banco) precisa continuar carregando sem quebrar.

class ProductCategoryEnum(str, Enum):
    PIZZA = "pizza"
    PASTRY = "pastry"
    ICE_CREAM = "ice-cream"
    BEVERAGE = "beverage"
    COMBO = "combo"
    OTHER = "other"


class PaymentMethodEnum(str, Enum):
    CARD = "card"
    CASH = "cash"
    PIX_CHURCH = "pix-church"
    PIX_QR = "pix-qr"


class OrderStatusEnum(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"


class CampaignStatusEnum(str, Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"


# ==========================================
#     REGISTROS (o que o banco devolve)
# ==========================================

class Record(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class Pathfinder(Record):
    id: str
    name: str
    created_at: Optional[dt.datetime] = None


class ComboItem(Record):
    product_id: str
    quantity: int = 1
    allow_flavor_selection: bool = False


class Product(Record):
    id: str
    name: str
    price: float = 0.0
    category: str = ProductCategoryEnum.OTHER.value
    flavors: Optional[List[str]] = None
    description: Optional[str] = None
    combo_items: Optional[List[ComboItem]] = None
    created_at: Optional[dt.datetime] = None


class PriceHistory(Record):
    id: str
    product_id: str
    order_id: Optional[str] = None
    price: float
    effective_date: dt.datetime
    notes: Optional[str] = None
    created_at: Optional[dt.datetime] = None


class Order(Record):
    id: str
    user_id: Optional[str] = None
    pathfinder_id: str
    customer_name: str
    subtotal: float = 0.0
    discount: float = 0.0
    total_amount: float = 0.0
    payment_method: str
    status: str = OrderStatusEnum.PENDING.value
    date: dt.date
    notes: Optional[str] = None
    campaign_id: Optional[str] = None
    created_at: Optional[dt.datetime] = None


class OrderItem(Record):
    id: str
    order_id: str
    product_id: str
    quantity: int = 1
    flavor: Optional[str] = None
    combo_flavors: Optional[List[Optional[str]]] = None
    unit_price: float = 0.0
    total_price: float = 0.0
    created_at: Optional[dt.datetime] = None


class Campaign(Record):
    id: str
    name: str
    start_date: dt.date
    end_date: dt.date
    status: str = CampaignStatusEnum.PLANNED.value
    goal: Optional[float] = None
    description: Optional[str] = None
    created_at: Optional[dt.datetime] = None


# ==========================================
#        VISÕES DERIVADAS (Relatórios)
# ==========================================

class PathfinderSales(BaseModel):
    pathfinder: Pathfinder
    total_amount: float = 0.0
    total_quantity: int = 0
    order_count: int = 0


class ProductSales(BaseModel):
    product: Product
    total_quantity: int = 0
    total_amount: float = 0.0
    order_count: int = 0


class OrderItemDetail(BaseModel):
    product_id: str
    quantity: int
    flavor: Optional[str] = None
    product_name: str
    total_price: float
    combo_parent_id: Optional[str] = None  # Preenchido nas linhas filhas de um combo


class RecentOrder(Order):
    pathfinder_name: str


class OrderWithDetails(Order):
    pathfinder_name: str
    items_with_details: List[OrderItemDetail] = []


class SalesSummary(BaseModel):
    total_sales: float
    total_orders: int
    total_products_sold: int
    orders_by_status: Dict[str, int]
    sales_by_payment_method: Dict[str, float]
    top_pathfinder: Optional[PathfinderSales] = None
    selected_campaign: Optional[Campaign] = None
    active_campaign: Optional[Campaign] = None


# ==========================================
#        ENTRADAS DA API (Criação/Edição)
# ==========================================

class PathfinderCreate(BaseModel):
    name: str


class PathfinderUpdate(BaseModel):
    name: Optional[str] = None


class ComboItemIn(BaseModel):
    product_id: str
    quantity: int = 1
    allow_flavor_selection: bool = False


class ProductCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str
    price: float
    category: ProductCategoryEnum = ProductCategoryEnum.OTHER
    flavors: Optional[List[str]] = None
    description: Optional[str] = None
    combo_items: Optional[List[ComboItemIn]] = None


class ProductUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: Optional[str] = None
    price: Optional[float] = None
    category: Optional[ProductCategoryEnum] = None
    flavors: Optional[List[str]] = None
    description: Optional[str] = None
    combo_items: Optional[List[ComboItemIn]] = None
    price_note: Optional[str] = None  # Vai para o histórico de preços


class CampaignCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str
    start_date: dt.date
    end_date: dt.date
    status: CampaignStatusEnum = CampaignStatusEnum.PLANNED
    goal: Optional[float] = None
    description: Optional[str] = None


class CampaignUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: Optional[str] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    status: Optional[CampaignStatusEnum] = None
    goal: Optional[float] = None
    description: Optional[str] = None


class SelectedCampaignRequest(BaseModel):
    campaign_id: Optional[str] = None


class OrderItemCreate(BaseModel):
    product_id: str
    quantity: int = 1
    flavor: Optional[str] = None
    combo_flavors: Optional[List[Optional[str]]] = None
    unit_price: float
    total_price: float


class OrderCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    pathfinder_id: str
    customer_name: str
    subtotal: float
    discount: float = 0.0
    total_amount: float
    payment_method: PaymentMethodEnum
    status: Optional[OrderStatusEnum] = None
    date: Optional[dt.date] = None
    notes: Optional[str] = None
    campaign_id: Optional[str] = None
    items: List[OrderItemCreate] = []


class OrderUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    customer_name: Optional[str] = None
    pathfinder_id: Optional[str] = None
    subtotal: Optional[float] = None
    discount: Optional[float] = None
    total_amount: Optional[float] = None
    payment_method: Optional[PaymentMethodEnum] = None
    status: Optional[OrderStatusEnum] = None
    notes: Optional[str] = None
    campaign_id: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    status: OrderStatusEnum
