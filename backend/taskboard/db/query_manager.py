"""Chainable query helpers exposed on models as `Model.objects`."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlmodel import SQLModel, col, select

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

ModelT = TypeVar("ModelT", bound=SQLModel)


@dataclass(frozen=True)
class QuerySet(Generic[ModelT]):
    """Immutable query description; each refinement returns a new instance."""

    model: type[ModelT]
    clauses: tuple[Any, ...] = ()
    ordering: tuple[Any, ...] = ()
    lock_rows: bool = field(default=False)

    def filter(self, *clauses: Any) -> QuerySet[ModelT]:
        return replace(self, clauses=(*self.clauses, *clauses))

    def filter_by(self, **values: Any) -> QuerySet[ModelT]:
        clauses = tuple(col(getattr(self.model, key)) == value for key, value in values.items())
        return self.filter(*clauses)

    def order_by(self, *ordering: Any) -> QuerySet[ModelT]:
        return replace(self, ordering=(*self.ordering, *ordering))

    def for_update(self) -> QuerySet[ModelT]:
        return replace(self, lock_rows=True)

    def statement(self) -> Any:
        statement = select(self.model)
        if self.clauses:
            statement = statement.where(*self.clauses)
        if self.ordering:
            statement = statement.order_by(*self.ordering)
        if self.lock_rows:
            statement = statement.with_for_update()
        return statement

    async def all(self, session: AsyncSession) -> list[ModelT]:
        return list(await session.exec(self.statement()))

    async def first(self, session: AsyncSession) -> ModelT | None:
        return (await session.exec(self.statement())).first()


class ModelManager(Generic[ModelT]):
    """Entry point for building model-scoped query sets."""

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    def all(self) -> QuerySet[ModelT]:
        return QuerySet(self.model)

    def filter(self, *clauses: Any) -> QuerySet[ModelT]:
        return self.all().filter(*clauses)

    def filter_by(self, **values: Any) -> QuerySet[ModelT]:
        return self.all().filter_by(**values)

    def by_id(self, obj_id: Any) -> QuerySet[ModelT]:
        return self.filter_by(id=obj_id)

    def by_ids(self, obj_ids: list[Any]) -> QuerySet[ModelT]:
        return self.filter(col(getattr(self.model, "id")).in_(obj_ids))


class ManagerDescriptor:
    """Class-level descriptor returning a manager bound to the owner model."""

    def __get__(self, instance: object, owner: type[SQLModel]) -> ModelManager[Any]:
        return ModelManager(owner)
