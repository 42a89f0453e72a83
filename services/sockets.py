import logging
from typing import List, Dict
from fastapi import WebSocket

logger = logging.getLogger(__name__)

KITCHEN_CHANNEL = "kitchen"


class ConnectionManager:
    def __init__(self):
        # Dicionário: { canal: [lista_de_sockets_conectados] }
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, channel: str = KITCHEN_CHANNEL):
        await websocket.accept()
        self.active_connections.setdefault(channel, []).append(websocket)
        logger.info(f"🔌 [Socket] Tela conectada no canal {channel}")

    def disconnect(self, websocket: WebSocket, channel: str = KITCHEN_CHANNEL):
        if websocket in self.active_connections.get(channel, []):
            self.active_connections[channel].remove(websocket)
            logger.info(f"🔌 [Socket] Tela desconectada do canal {channel}")

    async def broadcast(self, message: str, channel: str = KITCHEN_CHANNEL):
        """Envia mensagem para TODAS as telas do canal"""
        # Copia a lista para evitar erro de modificação durante iteração
        connections = self.active_connections.get(channel, [])[:]
        for connection in connections:
            try:
                await connection.send_text(message)
            except Exception as e:
                # Se der erro (ex: fechou navegador), remove da lista
                logger.warning(f"⚠️ Erro ao enviar socket: {e}")
                self.disconnect(connection, channel)


# Instância Global (Singleton)
manager = ConnectionManager()
