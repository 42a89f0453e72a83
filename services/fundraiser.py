import logging
from datetime import date, datetime
from typing import Any, Dict, List, NamedTuple, Optional

import pytz

from schemas import (
    Campaign,
    Order,
    OrderItem,
    OrderWithDetails,
    Pathfinder,
    PathfinderSales,
    PriceHistory,
    Product,
    ProductSales,
    RecentOrder,
)
from services.analytics import SalesBrain
from services.export import build_orders_csv, export_filename

logger = logging.getLogger(__name__)

ACTIVE = "active"
COMPLETED = "completed"
DEFAULT_PRICE_NOTE = "Preço atualizado"


class CsvExport(NamedTuple):
    filename: str
    content: str


def _utcnow():
    return datetime.now(pytz.utc).replace(tzinfo=None)


class FundraiserStore:
    """
    Estado da venda em memória: coleções carregadas do banco, indexadas por id,
    mais a campanha selecionada. As ações gravam no banco primeiro e só então
    aplicam o registro devolvido na coleção.
    """

    def __init__(self, backend, session=None):
        self.backend = backend
        self.session = session  # SessionContext opcional (usuário que lança o pedido)

        self.pathfinders: Dict[str, Pathfinder] = {}
        self.products: Dict[str, Product] = {}
        self.orders: Dict[str, Order] = {}
        self.order_items: Dict[str, OrderItem] = {}
        self.campaigns: Dict[str, Campaign] = {}
        self.selected_campaign_id: Optional[str] = None

    # ==========================================
    #               CARGA
    # ==========================================
    async def load(self) -> bool:
        try:
            rows = await self.backend.select_all("pathfinders")
            self.pathfinders = {r["id"]: Pathfinder.model_validate(r) for r in rows}

            rows = await self.backend.select_all("products")
            self.products = {r["id"]: Product.model_validate(r) for r in rows}

            rows = await self.backend.select_all("orders")
            self.orders = {r["id"]: Order.model_validate(r) for r in rows}

            rows = await self.backend.select_all("order_items")
            self.order_items = {r["id"]: OrderItem.model_validate(r) for r in rows}

            rows = await self.backend.select_all("campaigns", order_by="start_date", descending=True)
            self.campaigns = {r["id"]: Campaign.model_validate(r) for r in rows}
        except Exception as e:
            logger.error(f"❌ Erro ao carregar dados do banco: {e}")
            return False

        active = self.active_campaign
        if active:
            self.selected_campaign_id = active.id
        elif self.campaigns:
            self.selected_campaign_id = next(iter(self.campaigns))

        logger.info(
            f"📦 Dados carregados: {len(self.orders)} pedidos, {len(self.products)} produtos, "
            f"{len(self.pathfinders)} desbravadores"
        )
        return True

    # ==========================================
    #            DESBRAVADORES
    # ==========================================
    async def add_pathfinder(self, name: str) -> Pathfinder:
        try:
            row = await self.backend.insert_one("pathfinders", {"name": name})
        except Exception as e:
            logger.error(f"❌ Erro ao adicionar desbravador: {e}")
            raise

        pathfinder = Pathfinder.model_validate(row)
        self.pathfinders[pathfinder.id] = pathfinder
        return pathfinder

    async def update_pathfinder(self, pk: str, data: Dict[str, Any]) -> Pathfinder:
        try:
            row = await self.backend.update_by_key("pathfinders", pk, data)
        except Exception as e:
            logger.error(f"❌ Erro ao atualizar desbravador: {e}")
            raise

        pathfinder = Pathfinder.model_validate(row)
        if pk in self.pathfinders:
            self.pathfinders[pk] = pathfinder
        return pathfinder

    async def delete_pathfinder(self, pk: str):
        try:
            await self.backend.delete_by_key("pathfinders", pk)
        except Exception as e:
            logger.error(f"❌ Erro ao remover desbravador: {e}")
            raise

        self.pathfinders.pop(pk, None)
        # O banco apaga os pedidos em cascata; aqui só espelhamos
        for order_id in [o.id for o in self.orders.values() if o.pathfinder_id == pk]:
            self._drop_order(order_id)

    # ==========================================
    #               PRODUTOS
    # ==========================================
    async def add_product(self, data: Dict[str, Any]) -> Product:
        try:
            row = await self.backend.insert_one("products", data)
        except Exception as e:
            logger.error(f"❌ Erro ao adicionar produto: {e}")
            raise

        product = Product.model_validate(row)
        self.products[product.id] = product
        return product

    async def update_product(self, pk: str, data: Dict[str, Any], price_note: Optional[str] = None) -> Product:
        old_product = self.products.get(pk)

        try:
            row = await self.backend.update_by_key("products", pk, data)
        except Exception as e:
            logger.error(f"❌ Erro ao atualizar produto: {e}")
            raise

        new_price = data.get("price")
        if old_product and new_price is not None and old_product.price != new_price:
            try:
                await self.backend.insert_one("price_history", {
                    "product_id": pk,
                    "price": new_price,
                    "notes": price_note or DEFAULT_PRICE_NOTE,
                    "effective_date": _utcnow(),
                })
            except Exception as e:
                # O produto já foi salvo; o histórico fica sem essa linha
                logger.warning(f"⚠️ Erro ao registrar histórico de preço do produto {pk}: {e}")

        product = Product.model_validate(row)
        if pk in self.products:
            self.products[pk] = product
        return product

    async def get_price_history(self, product_id: str) -> List[PriceHistory]:
        try:
            rows = await self.backend.select_where(
                "price_history", {"product_id": product_id}, order_by="effective_date", descending=True
            )
        except Exception as e:
            logger.error(f"❌ Erro ao buscar histórico de preços: {e}")
            return []
        return [PriceHistory.model_validate(r) for r in rows]

    async def delete_product(self, pk: str):
        try:
            await self.backend.delete_by_key("products", pk)
        except Exception as e:
            logger.error(f"❌ Erro ao remover produto: {e}")
            raise

        self.products.pop(pk, None)

    # ==========================================
    #               CAMPANHAS
    # ==========================================
    def _complete_other_active(self, keep_id: Optional[str] = None):
        for pk, campaign in self.campaigns.items():
            if campaign.status == ACTIVE and pk != keep_id:
                self.campaigns[pk] = campaign.model_copy(update={"status": COMPLETED})

    async def add_campaign(self, data: Dict[str, Any]) -> Campaign:
        try:
            # Só pode existir uma campanha ativa
            if data.get("status") == ACTIVE:
                await self.backend.update_where("campaigns", {"status": COMPLETED}, {"status": ACTIVE})
                self._complete_other_active()

            row = await self.backend.insert_one("campaigns", data)
        except Exception as e:
            logger.error(f"❌ Erro ao adicionar campanha: {e}")
            raise

        campaign = Campaign.model_validate(row)
        # A mais nova vai para o topo da lista
        self.campaigns = {campaign.id: campaign, **self.campaigns}

        if campaign.status == ACTIVE:
            self.selected_campaign_id = campaign.id
        return campaign

    async def update_campaign(self, pk: str, data: Dict[str, Any]) -> Campaign:
        try:
            if data.get("status") == ACTIVE:
                await self.backend.update_where(
                    "campaigns", {"status": COMPLETED}, {"status": ACTIVE}, not_equals={"id": pk}
                )
                self._complete_other_active(keep_id=pk)

            row = await self.backend.update_by_key("campaigns", pk, data)
        except Exception as e:
            logger.error(f"❌ Erro ao atualizar campanha: {e}")
            raise

        campaign = Campaign.model_validate(row)
        if pk in self.campaigns:
            self.campaigns[pk] = campaign

        if campaign.status == ACTIVE:
            self.selected_campaign_id = campaign.id
        return campaign

    async def delete_campaign(self, pk: str):
        try:
            await self.backend.delete_by_key("campaigns", pk)
        except Exception as e:
            logger.error(f"❌ Erro ao remover campanha: {e}")
            raise

        self.campaigns.pop(pk, None)

        # O banco zera campaign_id dos pedidos (SET NULL); aqui só espelhamos
        for order_id, order in list(self.orders.items()):
            if order.campaign_id == pk:
                self.orders[order_id] = order.model_copy(update={"campaign_id": None})

        # Se a campanha removida estava selecionada, escolhe outra
        if self.selected_campaign_id == pk:
            active = self.active_campaign
            if active:
                self.selected_campaign_id = active.id
            else:
                self.selected_campaign_id = next(iter(self.campaigns), None)

    def set_selected_campaign(self, campaign_id: Optional[str]):
        self.selected_campaign_id = campaign_id

    @property
    def active_campaign(self) -> Optional[Campaign]:
        return next((c for c in self.campaigns.values() if c.status == ACTIVE), None)

    @property
    def selected_campaign(self) -> Optional[Campaign]:
        if not self.selected_campaign_id:
            return None
        return self.campaigns.get(self.selected_campaign_id)

    # ==========================================
    #                PEDIDOS
    # ==========================================
    async def add_order(self, data: Dict[str, Any], items: Optional[List[Dict[str, Any]]] = None, user_id: Optional[str] = None) -> Order:
        if user_id is None and self.session is not None:
            user_id = self.session.user_id

        values = {
            "user_id": user_id,
            "pathfinder_id": data["pathfinder_id"],
            "customer_name": data["customer_name"],
            "subtotal": data.get("subtotal", 0.0),
            "discount": data.get("discount", 0.0),
            "total_amount": data.get("total_amount", 0.0),
            "payment_method": data["payment_method"],
            "status": data.get("status") or "pending",
            "date": data.get("date") or date.today(),
            "notes": data.get("notes"),
            "campaign_id": data.get("campaign_id") or self.selected_campaign_id,
        }

        try:
            row = await self.backend.insert_one("orders", values)
            order = Order.model_validate(row)
            self.orders[order.id] = order

            # Itens vão numa segunda chamada; se falhar, o pedido já está gravado
            if items:
                rows = await self.backend.insert_many("order_items", [
                    {
                        "order_id": order.id,
                        "product_id": item["product_id"],
                        "quantity": item["quantity"],
                        "flavor": item.get("flavor") or None,
                        "combo_flavors": item.get("combo_flavors"),
                        "unit_price": item["unit_price"],
                        "total_price": item["total_price"],
                    }
                    for item in items
                ])
                for r in rows:
                    order_item = OrderItem.model_validate(r)
                    self.order_items[order_item.id] = order_item
        except Exception as e:
            logger.error(f"❌ Erro ao adicionar pedido: {e}")
            raise

        return order

    async def update_order(self, pk: str, data: Dict[str, Any]) -> Order:
        try:
            row = await self.backend.update_by_key("orders", pk, data)
        except Exception as e:
            logger.error(f"❌ Erro ao atualizar pedido: {e}")
            raise

        order = Order.model_validate(row)
        if pk in self.orders:
            self.orders[pk] = order
        return order

    async def update_order_status(self, pk: str, status: str) -> Order:
        return await self.update_order(pk, {"status": status})

    async def delete_order(self, pk: str):
        try:
            await self.backend.delete_by_key("orders", pk)
        except Exception as e:
            logger.error(f"❌ Erro ao remover pedido: {e}")
            raise

        self._drop_order(pk)

    def _drop_order(self, order_id: str):
        self.orders.pop(order_id, None)
        for item_id in [i.id for i in self.order_items.values() if i.order_id == order_id]:
            del self.order_items[item_id]

    # ==========================================
    #          VISÕES (recalculadas)
    # ==========================================
    def brain(self) -> SalesBrain:
        return SalesBrain(
            self.pathfinders,
            self.products,
            self.orders,
            self.order_items,
            campaign_id=self.selected_campaign_id,
        )

    @property
    def filtered_orders(self) -> List[Order]:
        return self.brain().filtered_orders()

    @property
    def total_sales(self) -> float:
        return self.brain().total_sales()

    @property
    def total_orders(self) -> int:
        return self.brain().total_orders()

    @property
    def total_products_sold(self) -> int:
        return self.brain().total_products_sold()

    @property
    def orders_by_status(self) -> Dict[str, int]:
        return self.brain().orders_by_status()

    @property
    def sales_by_pathfinder(self) -> List[PathfinderSales]:
        return self.brain().sales_by_pathfinder()

    @property
    def sales_by_product(self) -> List[ProductSales]:
        return self.brain().sales_by_product()

    @property
    def sales_by_payment_method(self) -> Dict[str, float]:
        return self.brain().sales_by_payment_method()

    @property
    def top_pathfinder(self) -> Optional[PathfinderSales]:
        return self.brain().top_pathfinder()

    @property
    def recent_orders(self) -> List[RecentOrder]:
        return self.brain().recent_orders()

    @property
    def orders_with_details(self) -> List[OrderWithDetails]:
        return self.brain().orders_with_details()

    @property
    def kitchen_orders(self) -> List[OrderWithDetails]:
        return self.brain().kitchen_orders()

    def export_to_csv(self, today: Optional[date] = None) -> CsvExport:
        campaign = self.selected_campaign
        content = build_orders_csv(self.filtered_orders, self.pathfinders)
        filename = export_filename(campaign.name if campaign else None, today or date.today())
        return CsvExport(filename=filename, content=content)
