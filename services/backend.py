"""
Acesso ao banco relacional no formato "tabela + chave".
Cada chamada abre sua própria sessão, faz commit e devolve dicts simples,
como uma API REST de banco hospedado faria. O FundraiserStore não conhece
SQLAlchemy, só estes métodos.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from database import SessionLocal
from models import Pathfinder, Product, PriceHistory, Order, OrderItem, Campaign


TABLES = {
    "pathfinders": Pathfinder,
    "products": Product,
    "price_history": PriceHistory,
    "orders": Order,
    "order_items": OrderItem,
    "campaigns": Campaign,
}


class BackendError(Exception):
    """Falha em qualquer chamada ao banco."""


class RecordNotFound(BackendError):
    pass


def _to_dict(obj) -> Dict[str, Any]:
    return {col.name: getattr(obj, col.name) for col in obj.__table__.columns}


class SqlBackend:
    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def _model(self, table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise BackendError(f"Tabela desconhecida: {table}")

    def _apply_order(self, query, model, order_by: Optional[str], descending: bool):
        if order_by:
            column = getattr(model, order_by)
            query = query.order_by(column.desc() if descending else column.asc())
        return query

    # --- LEITURA ---
    async def select_all(self, table: str, order_by: Optional[str] = None, descending: bool = False) -> List[Dict[str, Any]]:
        return await self.select_where(table, {}, order_by=order_by, descending=descending)

    async def select_where(
        self,
        table: str,
        filters: Dict[str, Any],
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        model = self._model(table)
        try:
            with self.session_factory() as db:
                query = db.query(model).filter_by(**filters)
                query = self._apply_order(query, model, order_by, descending)
                return [_to_dict(row) for row in query.all()]
        except SQLAlchemyError as e:
            raise BackendError(f"Erro ao ler {table}: {e}") from e

    # --- ESCRITA ---
    async def insert_one(self, table: str, values: Dict[str, Any]) -> Dict[str, Any]:
        rows = await self.insert_many(table, [values])
        return rows[0]

    async def insert_many(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        model = self._model(table)
        try:
            with self.session_factory() as db:
                objs = [model(**values) for values in rows]
                db.add_all(objs)
                db.commit()
                for obj in objs:
                    db.refresh(obj)
                return [_to_dict(obj) for obj in objs]
        except SQLAlchemyError as e:
            raise BackendError(f"Erro ao inserir em {table}: {e}") from e

    async def update_by_key(self, table: str, pk: str, values: Dict[str, Any]) -> Dict[str, Any]:
        model = self._model(table)
        try:
            with self.session_factory() as db:
                obj = db.get(model, pk)
                if obj is None:
                    raise RecordNotFound(f"{table}: registro {pk} não encontrado")
                for key, value in values.items():
                    setattr(obj, key, value)
                db.commit()
                db.refresh(obj)
                return _to_dict(obj)
        except SQLAlchemyError as e:
            raise BackendError(f"Erro ao atualizar {table}: {e}") from e

    async def update_where(
        self,
        table: str,
        values: Dict[str, Any],
        equals: Dict[str, Any],
        not_equals: Optional[Dict[str, Any]] = None,
    ) -> int:
        """UPDATE em lote. Retorna quantas linhas mudaram."""
        model = self._model(table)
        try:
            with self.session_factory() as db:
                query = db.query(model).filter_by(**equals)
                for key, value in (not_equals or {}).items():
                    query = query.filter(getattr(model, key) != value)
                count = query.update(values, synchronize_session=False)
                db.commit()
                return count
        except SQLAlchemyError as e:
            raise BackendError(f"Erro ao atualizar {table}: {e}") from e

    async def delete_by_key(self, table: str, pk: str) -> None:
        model = self._model(table)
        try:
            with self.session_factory() as db:
                obj = db.get(model, pk)
                if obj is not None:
                    db.delete(obj)
                    db.commit()
        except SQLAlchemyError as e:
            raise BackendError(f"Erro ao remover de {table}: {e}") from e
