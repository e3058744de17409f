"""Generic async repository.

Base class for the per-aggregate repositories. It covers the CRUD
operations the services need on top of SQLAlchemy 2.0 async sessions.
Repositories flush but never commit; the service owns the transaction.
"""

from typing import Any, Generic, Sequence, TypeVar
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cityflow.infra.database import Base

# Type variables for generic repository
ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class GenericRepository(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """Generic async repository providing standard CRUD operations.

    Type Parameters:
        ModelType: The SQLAlchemy model class
        CreateSchemaType: Pydantic schema for creation
        UpdateSchemaType: Pydantic schema for updates

    Example:
        class PlanRepository(GenericRepository[Plan, PlanCreate, PlanUpdate]):
            def __init__(self, session: AsyncSession):
                super().__init__(Plan, session)
    """

    def __init__(self, model: type[ModelType], session: AsyncSession) -> None:
        self._model = model
        self._session = session

    # ==================== CREATE Operations ====================

    async def create(self, data: CreateSchemaType | dict[str, Any]) -> ModelType:
        """Create a new record.

        Args:
            data: Pydantic schema or dict with creation data

        Returns:
            The created model instance
        """
        obj_data = self._to_dict(data)
        db_obj = self._model(**obj_data)
        self._session.add(db_obj)
        await self._session.flush()
        await self._session.refresh(db_obj)
        return db_obj

    # ==================== READ Operations ====================

    async def get_by_id(self, id: UUID) -> ModelType | None:
        """Get a record by its ID, or None if it does not exist."""
        return await self.find_one(self._model.id == id)

    async def find_one(self, *conditions: Any) -> ModelType | None:
        """Find a single record matching the conditions."""
        stmt = select(self._model).where(*conditions)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_many(
        self,
        *conditions: Any,
        skip: int = 0,
        limit: int | None = 100,
        order_by: Any | None = None,
    ) -> Sequence[ModelType]:
        """Find multiple records matching the conditions.

        Args:
            *conditions: SQLAlchemy filter conditions
            skip: Number of records to skip (offset)
            limit: Maximum number of records to return, None for all
            order_by: Column or list of columns for ordering

        Returns:
            Sequence of model instances
        """
        stmt = select(self._model)
        if conditions:
            stmt = stmt.where(*conditions)
        stmt = self._apply_ordering(stmt, order_by)
        stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def count(self, *conditions: Any) -> int:
        """Count records matching the conditions."""
        stmt = select(func.count()).select_from(self._model)
        if conditions:
            stmt = stmt.where(*conditions)
        result = await self._session.execute(stmt)
        return result.scalar() or 0

    # ==================== UPDATE Operations ====================

    async def update_obj(
        self,
        db_obj: ModelType,
        data: UpdateSchemaType | dict[str, Any],
    ) -> ModelType:
        """Apply changes to an already loaded instance."""
        for field, value in self._to_dict(data).items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        await self._session.flush()
        await self._session.refresh(db_obj)
        return db_obj

    async def update_many(
        self,
        *conditions: Any,
        data: dict[str, Any],
    ) -> int:
        """Update multiple records matching the conditions.

        Returns:
            Number of updated records
        """
        stmt = (
            update(self._model)
            .where(*conditions)
            .values(**data)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    # ==================== DELETE Operations ====================

    async def delete_obj(self, db_obj: ModelType) -> None:
        """Delete an already loaded instance."""
        await self._session.delete(db_obj)
        await self._session.flush()

    # ==================== Helper Methods ====================

    @staticmethod
    def _to_dict(data: BaseModel | dict[str, Any]) -> dict[str, Any]:
        if isinstance(data, BaseModel):
            return data.model_dump(exclude_unset=True)
        return data

    def _apply_ordering(
        self,
        stmt: Select[tuple[ModelType]],
        order_by: Any | None,
    ) -> Select[tuple[ModelType]]:
        """Apply ordering to the query."""
        if order_by is not None:
            if isinstance(order_by, (list, tuple)):
                stmt = stmt.order_by(*order_by)
            else:
                stmt = stmt.order_by(order_by)
        elif hasattr(self._model, "created_at"):
            # Default ordering by created_at descending
            stmt = stmt.order_by(self._model.created_at.desc())
        return stmt
