"""
Data Access Gateway

The single channel between the request handlers and storage. It exposes
filtered CRUD over the three tenant-scoped entities (``raw_material``,
``product``, ``sale``) and the two junction entities (``product_material``,
``sale_product``).

Rules enforced here:

- Filters are equality predicates only.
- Calls against a tenant entity must filter on ``user_id``; calls against a
  junction entity must filter on its parent id. Junction rows carry no
  ``user_id`` and inherit their scope from the parent.
- Every call is its own unit of work. There is no transaction spanning
  several calls, and nothing is retried.
- Any SQLAlchemy failure surfaces as ``StorageError`` with the driver message.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from sqlalchemy import case, delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload, sessionmaker

from database import SessionLocal
from models import Product, ProductMaterial, RawMaterial, Sale, SaleProduct
from utils import sqlalchemy_to_dict
from utils.errors import StorageError, TenantScopeError

logger = logging.getLogger("gateway")

# entity name -> (model, column every call must be scoped by)
ENTITIES = {
    "raw_material": (RawMaterial, "user_id"),
    "product": (Product, "user_id"),
    "sale": (Sale, "user_id"),
    "product_material": (ProductMaterial, "product_id"),
    "sale_product": (SaleProduct, "sale_id"),
}


class Gateway:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def find(self, entity: str, filters: Dict[str, Any], embed: Optional[str] = None) -> List[dict]:
        """Select rows matching ``filters``.

        ``embed`` names a relationship on the entity (``material`` on
        ``product_material``, ``product`` on ``sale_product``); the referenced
        row is nested under that key, or ``None`` when it no longer exists.
        """
        model, clauses = self._scoped(entity, filters)
        stmt = select(model).where(*clauses).order_by(model.id)
        if embed is not None:
            stmt = stmt.options(selectinload(getattr(model, embed)))
        with self._unit(entity, "find") as db:
            rows = []
            for obj in db.scalars(stmt).all():
                row = sqlalchemy_to_dict(obj)
                if embed is not None:
                    row[embed] = sqlalchemy_to_dict(getattr(obj, embed))
                rows.append(row)
            return rows

    def insert(self, entity: str, rows: List[Dict[str, Any]]) -> List[dict]:
        model, scope = self._spec(entity)
        for row in rows:
            if row.get(scope) is None:
                raise TenantScopeError(f"insert into {entity} requires '{scope}' on every row")
        with self._unit(entity, "insert") as db:
            objs = [model(**row) for row in rows]
            db.add_all(objs)
            db.flush()
            return [sqlalchemy_to_dict(obj) for obj in objs]

    def update(self, entity: str, filters: Dict[str, Any], patch: Dict[str, Any]) -> List[dict]:
        """Apply ``patch`` to every matching row and return the updated rows.

        An empty result means nothing matched; callers turn that into
        ``NotFound`` where it matters.
        """
        model, clauses = self._scoped(entity, filters)
        _, scope = self._spec(entity)
        if scope in patch:
            raise TenantScopeError(f"update of {entity} may not change '{scope}'")
        with self._unit(entity, "update") as db:
            objs = db.scalars(select(model).where(*clauses).order_by(model.id)).all()
            for obj in objs:
                for key, value in patch.items():
                    setattr(obj, key, value)
            db.flush()
            return [sqlalchemy_to_dict(obj) for obj in objs]

    def remove(self, entity: str, filters: Dict[str, Any]) -> None:
        model, clauses = self._scoped(entity, filters)
        with self._unit(entity, "remove") as db:
            db.execute(delete(model).where(*clauses))

    def decrement(self, entity: str, filters: Dict[str, Any], column: str, amount: float, floor: float = 0) -> List[dict]:
        """Lower ``column`` by ``amount`` in one statement, never below ``floor``.

        The arithmetic runs inside the UPDATE itself, so concurrent decrements
        of the same row cannot lose each other's writes.
        """
        model, clauses = self._scoped(entity, filters)
        target = getattr(model, column)
        remaining = target - amount
        stmt = (
            update(model)
            .where(*clauses)
            .values({column: case((remaining < floor, floor), else_=remaining)})
            .execution_options(synchronize_session=False)
        )
        with self._unit(entity, "decrement") as db:
            db.execute(stmt)
            return [sqlalchemy_to_dict(obj) for obj in db.scalars(select(model).where(*clauses)).all()]

    def _spec(self, entity: str):
        try:
            return ENTITIES[entity]
        except KeyError:
            raise ValueError(f"Unknown entity '{entity}'") from None

    def _scoped(self, entity: str, filters: Dict[str, Any]):
        model, scope = self._spec(entity)
        if filters.get(scope) is None:
            raise TenantScopeError(f"{entity} must be filtered by '{scope}'")
        clauses = []
        for key, value in filters.items():
            if not hasattr(model, key):
                raise ValueError(f"{entity} has no column '{key}'")
            clauses.append(getattr(model, key) == value)
        return model, clauses

    @contextmanager
    def _unit(self, entity: str, operation: str):
        db = self.session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            message = str(getattr(exc, "orig", None) or exc)
            logger.error(f"Storage {operation} on {entity} failed: {message}")
            raise StorageError(message) from exc
        finally:
            db.close()


def get_gateway() -> Gateway:
    """FastAPI dependency providing the gateway bound to the application engine."""
    return Gateway(SessionLocal)
