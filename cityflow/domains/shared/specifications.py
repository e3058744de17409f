"""Composable query filters for repositories."""

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from sqlalchemy import and_

from cityflow.infra.database import Base

T = TypeVar("T", bound=Base)


class Specification(ABC, Generic[T]):
    """A named query condition on one model.

    Conditions chain with ``&`` and become a SQLAlchemy expression only
    when the repository builds its statement:

        spec = PlanOwnedBySpec(user_id) & PlanStatusInSpec([PlanStatus.DRAFT])
        plans = await repo.find_many(spec.to_expression())
    """

    @abstractmethod
    def to_expression(self) -> Any:
        ...

    def __and__(self, other: "Specification[T]") -> "Specification[T]":
        return AllOf(self, other)


class AllOf(Specification[T]):
    """Every one of the given conditions must hold."""

    def __init__(self, *specs: Specification[T]) -> None:
        self.specs = specs

    def to_expression(self) -> Any:
        return and_(*(spec.to_expression() for spec in self.specs))
