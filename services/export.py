import re
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from schemas import Order, Pathfinder

CSV_HEADERS = [
    "Data",
    "Pedido #",
    "Desbravador",
    "Cliente",
    "Subtotal",
    "Desconto",
    "Total",
    "Forma de Pagamento",
    "Status",
]

PAYMENT_LABELS = {
    "card": "Cartão",
    "cash": "Dinheiro",
    "pix-church": "Pix Igreja",
    "pix-qr": "Pix QR",
}

ALL_CAMPAIGNS_LABEL = "Todas"


def format_brl(value) -> str:
    """10.5 -> 'R$ 10,50' (sem separador de milhar)"""
    # Empate de meio centavo sobe (10.125 -> 10,13), sobre o valor binário exato do float
    cents = Decimal(float(value or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"R$ {cents}".replace(".", ",")


def payment_label(code: str) -> str:
    return PAYMENT_LABELS.get(code, code)


def _quote(field) -> str:
    text = "" if field is None else str(field)
    return '"' + text.replace('"', '""') + '"'


def build_orders_csv(orders: List[Order], pathfinders: Dict[str, Pathfinder]) -> str:
    rows = [CSV_HEADERS]

    for order in orders:
        pathfinder = pathfinders.get(order.pathfinder_id)
        rows.append([
            order.date.isoformat() if order.date else "",
            order.id,
            pathfinder.name if pathfinder else "N/A",
            order.customer_name,
            format_brl(order.subtotal),
            format_brl(order.discount),
            format_brl(order.total_amount),
            payment_label(order.payment_method),
            order.status,
        ])

    return "\n".join(",".join(_quote(field) for field in row) for row in rows)


def export_filename(campaign_name: Optional[str], today: date) -> str:
    name = re.sub(r"\s+", "_", campaign_name or ALL_CAMPAIGNS_LABEL)
    return f"pedidos_{name}_{today.isoformat()}.csv"
