from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
import logging
import os
import pytz
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# Segredo compartilhado com o provedor de identidade (assina os tokens)
SECRET_KEY = os.getenv("JWT_SECRET")

if not SECRET_KEY:
    logger.warning("🚨 PERIGO: JWT_SECRET NÃO ENCONTRADA NO .ENV - usando chave insegura de desenvolvimento.")
    SECRET_KEY = "DEV_KEY_TEMPORARIA_NAO_USAR_EM_PROD"

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 24 horas


class InvalidToken(Exception):
    pass


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """Emite um token no mesmo formato do provedor (usado em testes e scripts)"""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(pytz.utc) + expires_delta
    else:
        expire = datetime.now(pytz.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str, verify_exp: bool = True) -> dict:
    """Valida o token e devolve o usuário mínimo {id, email}"""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM], options={"verify_exp": verify_exp})
    except JWTError as e:
        raise InvalidToken(str(e)) from e

    user_id = payload.get("sub")
    if not user_id:
        raise InvalidToken("Token sem 'sub'")
    return {"id": user_id, "email": payload.get("email")}


# ==========================================
#     PROVEDOR DE IDENTIDADE (operador local)
# ==========================================
class TokenIdentityProvider:
    """
    Sessão do operador do caixa a partir de um token do provedor
    (SESSION_TOKEN no .env ou sign_in). Avisa os ouvintes a cada troca.
    """

    def __init__(self, token: Optional[str] = None):
        self.token = token
        self._listeners = []

    async def get_session(self) -> Optional[dict]:
        if not self.token:
            return None
        try:
            user = decode_access_token(self.token)
        except InvalidToken as e:
            logger.warning(f"⚠️ Token de sessão inválido: {e}")
            return None
        return {"user": user, "access_token": self.token}

    async def sign_in(self, token: str) -> Optional[dict]:
        self.token = token
        session = await self.get_session()
        if session:
            self._notify("SIGNED_IN", session)
        return session

    async def sign_out(self):
        self.token = None
        self._notify("SIGNED_OUT", None)

    def on_auth_state_change(self, callback):
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, event: str, session: Optional[dict]):
        for callback in list(self._listeners):
            callback(event, session)
