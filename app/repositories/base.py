"""
Base repository with common CRUD operations.
All repositories should extend this class for database access.
"""
from typing import Generic, TypeVar, Type, Optional, List, Any

from sqlalchemy import select, func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common CRUD operations.

    Provides generic database operations that can be reused across all repositories.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    def upsert_statement(self):
        """
        Dialect-specific INSERT supporting ``on_conflict_do_update``.

        Both PostgreSQL and SQLite expose the same ON CONFLICT API, so callers
        can build one statement regardless of the backend in use.

        Example:
            ```python
            stmt = repo.upsert_statement().values(message_id=m, user_id=u)
            stmt = stmt.on_conflict_do_update(
                index_elements=["message_id", "user_id"],
                set_={"delivered_at": stmt.excluded.delivered_at},
            )
            ```
        """
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(self.model)
        if dialect == "sqlite":
            return sqlite_insert(self.model)
        raise NotImplementedError(f"Upsert is not supported for dialect '{dialect}'")

    async def create(self, **kwargs) -> ModelType:
        """
        Create a new record.

        Args:
            **kwargs: Model field values

        Returns:
            Created model instance

        Example:
            ```python
            user = await user_repo.create(email="a@b.c", username="alice", password_hash=h)
            ```
        """
        instance = self.model(**kwargs)
        self.db.add(instance)
        await self.db.flush()
        await self.db.refresh(instance)
        return instance

    async def get(self, id: str) -> Optional[ModelType]:
        """
        Get a record by ID.

        Args:
            id: Record ID

        Returns:
            Model instance or None if not found
        """
        result = await self.db.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def get_many(
        self,
        ids: List[str],
        order_by: Optional[Any] = None
    ) -> List[ModelType]:
        """
        Get multiple records by IDs.

        Args:
            ids: List of record IDs
            order_by: Optional SQLAlchemy order_by clause

        Returns:
            List of model instances (missing ids are simply absent)
        """
        if not ids:
            return []

        query = select(self.model).where(self.model.id.in_(ids))

        if order_by is not None:
            query = query.order_by(order_by)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def exists(self, id: str) -> bool:
        """Check if a record exists."""
        result = await self.db.execute(
            select(func.count()).select_from(self.model).where(self.model.id == id)
        )
        return (result.scalar() or 0) > 0

    async def count(self, **filters) -> int:
        """
        Count records matching filters.

        Example:
            ```python
            count = await message_repo.count(chat_id=chat_id)
            ```
        """
        query = select(func.count()).select_from(self.model)

        for key, value in filters.items():
            if hasattr(self.model, key):
                query = query.where(getattr(self.model, key) == value)

        result = await self.db.execute(query)
        return result.scalar() or 0
