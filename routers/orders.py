from fastapi import APIRouter, Depends, BackgroundTasks

from dependencies import get_store, get_current_user
from schemas import OrderCreate, OrderUpdate, OrderStatusUpdate
from services.fundraiser import FundraiserStore
from services.sockets import manager

router = APIRouter(prefix="/api/orders")

# ==========================================
#          LANÇAMENTO DE PEDIDOS
# ==========================================


@router.get("")
def list_orders(
    store: FundraiserStore = Depends(get_store),
    current_user: dict = Depends(get_current_user),
):
    """Pedidos da campanha selecionada, mais novos primeiro"""
    return store.brain().recent_orders(limit=None)


@router.post("", status_code=201)
async def create_order(
    payload: OrderCreate,
    background_tasks: BackgroundTasks,
    store: FundraiserStore = Depends(get_store),
    current_user: dict = Depends(get_current_user),
):
    data = payload.model_dump(exclude={"items"})
    items = [item.model_dump() for item in payload.items]

    order = await store.add_order(data, items, user_id=current_user["id"])

    # Dispara atualização do KDS (Socket)
    background_tasks.add_task(manager.broadcast, "update")
    return order


@router.patch("/{order_id}")
async def update_order(
    order_id: str,
    payload: OrderUpdate,
    background_tasks: BackgroundTasks,
    store: FundraiserStore = Depends(get_store),
    current_user: dict = Depends(get_current_user),
):
    order = await store.update_order(order_id, payload.model_dump(exclude_unset=True))
    background_tasks.add_task(manager.broadcast, "update")
    return order


@router.post("/{order_id}/status")
async def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    background_tasks: BackgroundTasks,
    store: FundraiserStore = Depends(get_store),
    current_user: dict = Depends(get_current_user),
):
    order = await store.update_order_status(order_id, payload.status)
    background_tasks.add_task(manager.broadcast, "update")
    return order


@router.delete("/{order_id}")
async def delete_order(
    order_id: str,
    background_tasks: BackgroundTasks,
    store: FundraiserStore = Depends(get_store),
    current_user: dict = Depends(get_current_user),
):
    await store.delete_order(order_id)
    background_tasks.add_task(manager.broadcast, "update")
    return {"success": True}
