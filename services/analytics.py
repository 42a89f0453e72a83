from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from schemas import (
    Order,
    OrderItem,
    OrderWithDetails,
    Pathfinder,
    PathfinderSales,
    Product,
    ProductSales,
    RecentOrder,
)
from services.normalizer import normalize_order_items_for_view

ORDER_STATUSES = ("pending", "preparing", "ready", "delivered")
KITCHEN_STATUSES = ("pending", "preparing", "ready")
PAYMENT_METHODS = ("card", "cash", "pix-church", "pix-qr")
OTHER_PAYMENT = "other"
UNKNOWN_PATHFINDER = "N/A"
RECENT_ORDERS_LIMIT = 10


def _created(order: Order) -> datetime:
    # Pedido sem data de criação vai para o começo da fila
    return order.created_at or datetime.min


class SalesBrain:
    """
    Relatórios calculados em memória sobre as coleções já carregadas.
    Nada é guardado entre chamadas: cada método recalcula a partir do estado
    recebido no construtor.
    """

    def __init__(
        self,
        pathfinders: Dict[str, Pathfinder],
        products: Dict[str, Product],
        orders: Dict[str, Order],
        order_items: Dict[str, OrderItem],
        campaign_id: Optional[str] = None,
    ):
        self.pathfinders = pathfinders
        self.products = products
        self.orders = orders
        self.order_items = order_items
        self.campaign_id = campaign_id  # None = todas as campanhas

    # --- FILTROS ---
    def filtered_orders(self) -> List[Order]:
        if not self.campaign_id:
            return list(self.orders.values())
        return [o for o in self.orders.values() if o.campaign_id == self.campaign_id]

    def _items_by_order(self) -> Dict[str, List[OrderItem]]:
        grouped = defaultdict(list)
        for item in self.order_items.values():
            grouped[item.order_id].append(item)
        return grouped

    def _filtered_items(self) -> List[OrderItem]:
        order_ids = {o.id for o in self.filtered_orders()}
        return [item for item in self.order_items.values() if item.order_id in order_ids]

    def _pathfinder_name(self, pathfinder_id: str) -> str:
        pathfinder = self.pathfinders.get(pathfinder_id)
        return pathfinder.name if pathfinder else UNKNOWN_PATHFINDER

    # --- KPIs ---
    def total_sales(self) -> float:
        return sum(o.total_amount for o in self.filtered_orders())

    def total_orders(self) -> int:
        return len(self.filtered_orders())

    def total_products_sold(self) -> int:
        return sum(item.quantity for item in self._filtered_items())

    def orders_by_status(self) -> Dict[str, int]:
        counts = {status: 0 for status in ORDER_STATUSES}
        for order in self.filtered_orders():
            # Status fora da lista não entra em nenhum balde
            if order.status in counts:
                counts[order.status] += 1
        return counts

    def sales_by_payment_method(self) -> Dict[str, float]:
        totals = {method: 0.0 for method in PAYMENT_METHODS}
        totals[OTHER_PAYMENT] = 0.0
        for order in self.filtered_orders():
            key = order.payment_method if order.payment_method in totals else OTHER_PAYMENT
            totals[key] += order.total_amount
        return totals

    # --- RANKINGS ---
    def sales_by_pathfinder(self) -> List[PathfinderSales]:
        items_by_order = self._items_by_order()
        sales_map: Dict[str, PathfinderSales] = {}

        for order in self.filtered_orders():
            pathfinder = self.pathfinders.get(order.pathfinder_id)
            if not pathfinder:
                continue

            entry = sales_map.get(order.pathfinder_id)
            if entry is None:
                entry = sales_map[order.pathfinder_id] = PathfinderSales(pathfinder=pathfinder)

            entry.total_amount += order.total_amount
            entry.total_quantity += sum(item.quantity for item in items_by_order.get(order.id, []))
            entry.order_count += 1

        # sorted é estável: empates mantêm a ordem de chegada
        return sorted(sales_map.values(), key=lambda s: s.total_amount, reverse=True)

    def sales_by_product(self) -> List[ProductSales]:
        sales_map: Dict[str, ProductSales] = {}

        for item in self._filtered_items():
            product = self.products.get(item.product_id)
            if not product:
                continue

            entry = sales_map.get(item.product_id)
            if entry is None:
                entry = sales_map[item.product_id] = ProductSales(product=product)

            entry.total_quantity += item.quantity
            entry.total_amount += item.total_price
            entry.order_count += 1

        return sorted(sales_map.values(), key=lambda s: s.total_quantity, reverse=True)

    def top_pathfinder(self) -> Optional[PathfinderSales]:
        ranking = self.sales_by_pathfinder()
        return ranking[0] if ranking else None

    # --- LISTAS DE PEDIDOS ---
    def recent_orders(self, limit: Optional[int] = RECENT_ORDERS_LIMIT) -> List[RecentOrder]:
        annotated = [
            RecentOrder(**o.model_dump(), pathfinder_name=self._pathfinder_name(o.pathfinder_id))
            for o in self.filtered_orders()
        ]
        annotated.sort(key=_created, reverse=True)
        return annotated[:limit]

    def orders_with_details(self) -> List[OrderWithDetails]:
        """Todos os pedidos (sem filtro de campanha) com combos abertos."""
        items_by_order = self._items_by_order()
        return [
            OrderWithDetails(
                **o.model_dump(),
                pathfinder_name=self._pathfinder_name(o.pathfinder_id),
                items_with_details=normalize_order_items_for_view(items_by_order.get(o.id, []), self.products),
            )
            for o in self.orders.values()
        ]

    def kitchen_orders(self) -> List[OrderWithDetails]:
        """Fila da cozinha: o mais antigo primeiro, sem os entregues."""
        queue = [o for o in self.orders_with_details() if o.status in KITCHEN_STATUSES]
        queue.sort(key=_created)
        return queue
