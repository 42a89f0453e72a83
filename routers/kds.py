import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from auth import decode_access_token, InvalidToken
from dependencies import get_store, get_current_user
from services.fundraiser import FundraiserStore
from services.sockets import manager, KITCHEN_CHANNEL

logger = logging.getLogger(__name__)

router = APIRouter()


# --- API: FILA DA COZINHA ---
@router.get("/api/kds/orders", dependencies=[Depends(get_current_user)])
def get_kds_orders(store: FundraiserStore = Depends(get_store)):
    """Pedidos não entregues, o mais antigo primeiro, com combos abertos"""
    return store.kitchen_orders


# --- WEBSOCKET DA COZINHA ---
@router.websocket("/ws/kitchen")
async def kitchen_websocket(websocket: WebSocket, token: Optional[str] = Query(None)):
    if not token:
        logger.warning("❌ WS: Conexão rejeitada (Sem token).")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        # Monitor da cozinha fica ligado o dia todo: só a assinatura importa
        decode_access_token(token, verify_exp=False)
    except InvalidToken as e:
        logger.warning(f"❌ WS: Erro Token: {e}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(websocket, KITCHEN_CHANNEL)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(websocket, KITCHEN_CHANNEL)
