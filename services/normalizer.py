from typing import Dict, List

from schemas import OrderItem, OrderItemDetail, Product

COMBO_CATEGORY = "combo"


def normalize_order_items_for_view(items: List[OrderItem], products: Dict[str, Product]) -> List[OrderItemDetail]:
    """
    Monta as linhas que a cozinha e a lista de pedidos exibem.
    Combo vira uma linha de cabeçalho (com o preço cobrado) seguida de uma
    linha por item do combo, com quantidade multiplicada e preço zero.
    O OrderItem original não é alterado.
    """
    standardized = []

    for item in items:
        product = products.get(item.product_id)
        if not product:
            # Produto removido do cardápio: não tem nome para mostrar
            continue

        if product.category == COMBO_CATEGORY and product.combo_items:
            standardized.append(
                OrderItemDetail(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    flavor=item.flavor,
                    product_name=f"{product.name} ▼",
                    total_price=item.total_price,
                )
            )
            standardized.extend(_expand_combo(item, product, products))
        else:
            standardized.append(
                OrderItemDetail(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    flavor=item.flavor,
                    product_name=product.name,
                    total_price=item.total_price,
                )
            )

    return standardized


def _expand_combo(item: OrderItem, combo: Product, products: Dict[str, Product]) -> List[OrderItemDetail]:
    combo_flavors = item.combo_flavors or []
    rows = []

    for idx, combo_item in enumerate(combo.combo_items):
        child = products.get(combo_item.product_id)
        if not child:
            continue

        flavor = combo_flavors[idx] if idx < len(combo_flavors) else None
        rows.append(
            OrderItemDetail(
                product_id=child.id,
                quantity=combo_item.quantity * item.quantity,  # Multiplica pela qtd pedida
                flavor=flavor,
                product_name=f"  └─ {child.name}",
                total_price=0.0,  # O preço já foi cobrado no cabeçalho do combo
                combo_parent_id=combo.id,
            )
        )

    return rows
