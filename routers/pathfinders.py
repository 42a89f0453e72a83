from fastapi import APIRouter, Depends, BackgroundTasks

from dependencies import get_store, get_current_user
from schemas import PathfinderCreate, PathfinderUpdate
from services.fundraiser import FundraiserStore
from services.sockets import manager

router = APIRouter(prefix="/api/pathfinders", dependencies=[Depends(get_current_user)])

# ==========================================
#         GESTÃO DE DESBRAVADORES
# ==========================================


@router.get("")
def list_pathfinders(store: FundraiserStore = Depends(get_store)):
    return sorted(store.pathfinders.values(), key=lambda p: p.name.lower())


@router.post("", status_code=201)
async def create_pathfinder(payload: PathfinderCreate, store: FundraiserStore = Depends(get_store)):
    return await store.add_pathfinder(payload.name)


@router.patch("/{pathfinder_id}")
async def update_pathfinder(
    pathfinder_id: str,
    payload: PathfinderUpdate,
    store: FundraiserStore = Depends(get_store),
):
    return await store.update_pathfinder(pathfinder_id, payload.model_dump(exclude_unset=True))


@router.delete("/{pathfinder_id}")
async def delete_pathfinder(
    pathfinder_id: str,
    background_tasks: BackgroundTasks,
    store: FundraiserStore = Depends(get_store),
):
    await store.delete_pathfinder(pathfinder_id)
    # Os pedidos dele saem da fila da cozinha
    background_tasks.add_task(manager.broadcast, "update")
    return {"success": True}
