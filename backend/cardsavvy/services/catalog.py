"""Database access for the card catalog (categories, banks, cards, articles, calculators)."""
import logging
from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cardsavvy.db.session import Base
from cardsavvy.models.catalog import Article, Card

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class CatalogConflict(Exception):
    """Raised when a write violates a uniqueness or foreign-key constraint."""

    def __init__(self, message: str = "A record with the same name or slug already exists."):
        self.message = message
        super().__init__(self.message)


class CatalogRepository(Generic[ModelT]):
    """CRUD operations for one catalog table."""

    def __init__(self, session: AsyncSession, model: type[ModelT]):
        self.session = session
        self.model = model

    async def list_all(self) -> Sequence[ModelT]:
        result = await self.session.execute(select(self.model).order_by(self.model.id))
        return result.scalars().all()

    async def get(self, item_id: int) -> ModelT | None:
        return await self.session.get(self.model, item_id)

    async def create(self, data: dict[str, Any]) -> ModelT:
        item = self.model(**{k: v for k, v in data.items() if v is not None})
        self.session.add(item)
        await self._flush()
        await self.session.refresh(item)
        logger.info(f"Created {self.model.__tablename__} id={item.id}")
        return item

    async def update(self, item_id: int, data: dict[str, Any]) -> ModelT | None:
        item = await self.get(item_id)
        if item is None:
            return None
        for key, value in data.items():
            setattr(item, key, value)
        await self._flush()
        await self.session.refresh(item)
        logger.info(f"Updated {self.model.__tablename__} id={item_id}")
        return item

    async def delete(self, item_id: int) -> bool:
        item = await self.get(item_id)
        if item is None:
            return False
        await self.session.delete(item)
        await self._flush()
        logger.info(f"Deleted {self.model.__tablename__} id={item_id}")
        return True

    async def _flush(self) -> None:
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(f"Integrity error on {self.model.__tablename__}: {e.orig}")
            raise CatalogConflict()


class CardRepository(CatalogRepository[Card]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, Card)

    async def by_category(self, category_id: int) -> Sequence[Card]:
        result = await self.session.execute(
            select(Card).where(Card.category_id == category_id).order_by(Card.id)
        )
        return result.scalars().all()

    async def by_bank(self, bank_id: int) -> Sequence[Card]:
        result = await self.session.execute(
            select(Card).where(Card.bank_id == bank_id).order_by(Card.id)
        )
        return result.scalars().all()

    async def featured(self) -> Sequence[Card]:
        result = await self.session.execute(
            select(Card).where(Card.featured.is_(True)).order_by(Card.id)
        )
        return result.scalars().all()


class ArticleRepository(CatalogRepository[Article]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, Article)

    async def recent(self, limit: int) -> Sequence[Article]:
        result = await self.session.execute(
            select(Article).order_by(Article.publish_date.desc(), Article.id.desc()).limit(limit)
        )
        return result.scalars().all()
