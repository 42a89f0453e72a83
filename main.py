import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

# --- Imports Locais ---
from auth import TokenIdentityProvider
from database import Base, engine
from dependencies import get_store, get_current_user
from services.backend import SqlBackend, BackendError, RecordNotFound
from services.fundraiser import FundraiserStore
from services.session import LocalSessionCache, SessionContext
from services.sockets import manager
from routers import (
    pathfinders,
    menu,
    campaigns,
    orders,
    kds,
    reports,
)

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


def _login_required(path: str):
    # API sem tela: o redirecionamento vira aviso no log
    logger.warning(f"🔒 Sessão sem usuário, login necessário ({path})")


def build_session() -> SessionContext:
    """Sessão do operador: token do SESSION_TOKEN, cache em SESSION_CACHE_PATH (ou memória)"""
    return SessionContext(
        TokenIdentityProvider(os.getenv("SESSION_TOKEN")),
        LocalSessionCache(os.getenv("SESSION_CACHE_PATH")),
        _login_required,
    )


def create_app(backend: Optional[SqlBackend] = None, session: Optional[SessionContext] = None) -> FastAPI:
    """
    Monta a aplicação. Sem backend explícito usa o banco do DATABASE_URL
    e cria as tabelas que faltarem. A sessão do operador vive junto com o app.
    """
    use_default_db = backend is None
    session = session or build_session()
    store = FundraiserStore(backend or SqlBackend(), session=session)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if use_default_db:
            # Cria tabelas se não existirem
            Base.metadata.create_all(bind=engine)
        await session.initialize()
        session.setup_auth_listener()
        await store.load()
        yield
        session.teardown()

    app = FastAPI(title="Vendas dos Desbravadores", lifespan=lifespan)
    app.state.store = store
    app.state.session = session

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- ERROS DO BANCO ---
    @app.exception_handler(RecordNotFound)
    async def record_not_found_handler(request: Request, exc: RecordNotFound):
        return JSONResponse(status_code=404, content={"message": str(exc)})

    @app.exception_handler(BackendError)
    async def backend_error_handler(request: Request, exc: BackendError):
        return JSONResponse(status_code=502, content={"message": str(exc)})

    app.include_router(pathfinders.router)
    app.include_router(menu.router)
    app.include_router(campaigns.router)
    app.include_router(orders.router)
    app.include_router(kds.router)
    app.include_router(reports.router)

    @app.post("/api/reload", dependencies=[Depends(get_current_user)])
    async def reload_data(store: FundraiserStore = Depends(get_store)):
        """Recarrega tudo do banco (ex: alguém editou direto na base)"""
        ok = await store.load()
        if not ok:
            return JSONResponse(status_code=503, content={"message": "Falha ao carregar dados do banco"})

        await manager.broadcast("update")
        return {"success": True, "orders": len(store.orders)}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
