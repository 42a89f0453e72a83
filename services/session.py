"""
Contexto de sessão do usuário logado.
Substitui o "usuário atual" global: quem monta a aplicação cria um
SessionContext, chama initialize() / setup_auth_listener() e, no fim,
teardown().
"""
import json
import logging
import os
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

USER_CACHE_KEY = "user"
LOGIN_PATH = "/login"
PUBLIC_PAGES = ("/login", "/reset-password")
INVITATION_TYPES = ("invite", "recovery")


class LocalSessionCache:
    """Guarda chave -> texto. Com `path`, persiste num arquivo JSON."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._data: Dict[str, str] = {}
        if path and os.path.exists(path):
            try:
                with open(path, encoding="utf-8") as f:
                    self._data = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning(f"⚠️ Cache de sessão ilegível ({path}): {e}")
                self._data = {}

    def _flush(self):
        if self.path:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self._data, f)

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str):
        self._data[key] = value
        self._flush()

    def remove(self, key: str):
        if self._data.pop(key, None) is not None:
            self._flush()


def _user_from_session(session) -> Optional[Dict[str, Any]]:
    user = (session or {}).get("user")
    if not user:
        return None
    return {"email": user.get("email"), "id": user.get("id")}


class SessionContext:
    def __init__(self, auth, cache: LocalSessionCache, navigate: Callable[[str], None]):
        # auth: provedor de identidade (get_session, sign_out, on_auth_state_change)
        self.auth = auth
        self.cache = cache
        self.navigate = navigate
        self.current_user: Optional[Dict[str, Any]] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    @property
    def user_id(self) -> Optional[str]:
        return self.current_user.get("id") if self.current_user else None

    def _remember(self, user: Dict[str, Any]):
        self.current_user = user
        self.cache.set(USER_CACHE_KEY, json.dumps(user))

    def _forget(self):
        self.current_user = None
        self.cache.remove(USER_CACHE_KEY)

    async def initialize(self, path: str = "/", query: Optional[Dict[str, str]] = None):
        query = query or {}
        session = await self.auth.get_session()
        user = _user_from_session(session)

        if user:
            self._remember(user)
        else:
            # Sem sessão no provedor: tenta o usuário salvo localmente
            saved = self.cache.get(USER_CACHE_KEY)
            if saved:
                try:
                    self.current_user = json.loads(saved)
                except ValueError:
                    logger.warning("⚠️ Usuário salvo no cache está corrompido, descartando.")
                    self.cache.remove(USER_CACHE_KEY)

        has_invitation_token = bool(query.get("token_hash")) and query.get("type") in INVITATION_TYPES

        if not self.current_user and path not in PUBLIC_PAGES and not has_invitation_token:
            self.navigate(LOGIN_PATH)

    def setup_auth_listener(self):
        self._unsubscribe = self.auth.on_auth_state_change(self._on_auth_state_change)

    def _on_auth_state_change(self, event: str, session):
        if event == "SIGNED_OUT":
            self._forget()
            self.navigate(LOGIN_PATH)
            return

        user = _user_from_session(session)
        if user:
            self._remember(user)

    async def logout(self):
        await self.auth.sign_out()
        self._forget()
        self.navigate(LOGIN_PATH)

    def teardown(self):
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
        self.current_user = None
