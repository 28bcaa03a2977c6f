from __future__ import annotations

import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any, TypeVar

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, func, select

from asset_ledger.domain.errors import (
    ConcurrentModificationError,
    ConflictError,
    OperationTimeoutError,
    StoreError,
)
from asset_ledger.domain.models import now_utc

ModelT = TypeVar("ModelT", bound=SQLModel)


class Deadline:
    def __init__(
        self,
        timeout_s: float | None = None,
        *,
        operation: str = "ledger operation",
    ) -> None:
        self.operation = operation
        self._expires_at = None if timeout_s is None else time.monotonic() + timeout_s
        self._cancelled = False

    @property
    def remaining(self) -> float | None:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        if self._cancelled:
            return True
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def cancel(self) -> None:
        self._cancelled = True

    def check(self) -> None:
        if self.expired:
            raise OperationTimeoutError(self.operation)


class LedgerStore:
    def __init__(self, session: Session, deadline: Deadline | None = None) -> None:
        self._session = session
        self._deadline = deadline or Deadline()

    @property
    def session(self) -> Session:
        return self._session

    @contextmanager
    def _call(self) -> Iterator[None]:
        self._deadline.check()
        try:
            yield
        except IntegrityError as exc:
            raise ConflictError(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc

    def get(self, model: type[ModelT], row_id: str, *, refresh: bool = False) -> ModelT | None:
        with self._call():
            return self._session.get(model, row_id, populate_existing=refresh)

    def find(
        self,
        model: type[ModelT],
        filters: Sequence[Any] = (),
        order_by: Sequence[Any] = (),
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ModelT]:
        statement = select(model)
        for clause in filters:
            statement = statement.where(clause)
        if order_by:
            statement = statement.order_by(*order_by)
        if offset:
            statement = statement.offset(offset)
        if limit is not None:
            statement = statement.limit(limit)
        with self._call():
            return list(self._session.exec(statement).all())

    def first(
        self,
        model: type[ModelT],
        filters: Sequence[Any] = (),
        order_by: Sequence[Any] = (),
    ) -> ModelT | None:
        rows = self.find(model, filters, order_by, limit=1)
        return rows[0] if rows else None

    def count(self, model: type[ModelT], filters: Sequence[Any] = ()) -> int:
        statement = select(func.count()).select_from(model)
        for clause in filters:
            statement = statement.where(clause)
        with self._call():
            return int(self._session.exec(statement).one())

    def insert(self, row: ModelT) -> ModelT:
        with self._call():
            self._session.add(row)
            self._session.flush()
            self._session.refresh(row)
        return row

    def update(
        self,
        model: type[ModelT],
        row_id: str,
        patch: dict[str, Any],
        *,
        expected_version: int | None = None,
        filters: Sequence[Any] = (),
    ) -> ModelT | None:
        table = model.__table__  # type: ignore[attr-defined]
        values = dict(patch)
        if "updated_at" in table.c and "updated_at" not in values:
            values["updated_at"] = now_utc()
        statement = sa.update(table).where(table.c.id == row_id)
        for clause in filters:
            statement = statement.where(clause)
        if "version" in table.c:
            values["version"] = table.c.version + 1
            if expected_version is not None:
                statement = statement.where(table.c.version == expected_version)
        with self._call():
            result = self._session.execute(statement.values(**values))
        if int(result.rowcount or 0) == 0:
            if expected_version is not None and self.get(model, row_id, refresh=True) is not None:
                raise ConcurrentModificationError(str(table.name), row_id, expected_version)
            return None
        return self.get(model, row_id, refresh=True)

    def delete(self, model: type[ModelT], row_id: str) -> bool:
        row = self.get(model, row_id)
        if row is None:
            return False
        with self._call():
            self._session.delete(row)
            self._session.flush()
        return True

    def delete_where(self, model: type[ModelT], filters: Sequence[Any]) -> int:
        table = model.__table__  # type: ignore[attr-defined]
        statement = sa.delete(table)
        for clause in filters:
            statement = statement.where(clause)
        with self._call():
            result = self._session.execute(statement)
        return int(result.rowcount or 0)
