from fastapi import APIRouter, Depends

from dependencies import get_store, get_current_user
from schemas import ProductCreate, ProductUpdate
from services.fundraiser import FundraiserStore

router = APIRouter(prefix="/api/products", dependencies=[Depends(get_current_user)])

# ==========================================
#           GESTÃO DE CARDÁPIO (CRUD)
# ==========================================


@router.get("")
def list_products(store: FundraiserStore = Depends(get_store)):
    products = list(store.products.values())

    # Combos separados dos produtos normais, igual ao cardápio
    return {
        "products": [p for p in products if p.category != "combo"],
        "combos": [p for p in products if p.category == "combo"],
    }


@router.post("", status_code=201)
async def create_product(payload: ProductCreate, store: FundraiserStore = Depends(get_store)):
    return await store.add_product(payload.model_dump())


@router.patch("/{product_id}")
async def update_product(
    product_id: str,
    payload: ProductUpdate,
    store: FundraiserStore = Depends(get_store),
):
    data = payload.model_dump(exclude_unset=True)
    price_note = data.pop("price_note", None)
    return await store.update_product(product_id, data, price_note=price_note)


@router.delete("/{product_id}")
async def delete_product(product_id: str, store: FundraiserStore = Depends(get_store)):
    await store.delete_product(product_id)
    return {"success": True}


@router.get("/{product_id}/price-history")
async def price_history(product_id: str, store: FundraiserStore = Depends(get_store)):
    return await store.get_price_history(product_id)
