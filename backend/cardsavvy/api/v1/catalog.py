"""Catalog API: categories, banks, cards, articles and calculators.

Reads are public. Writes need an admin session (see ``require_admin``).
"""
import logging

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from cardsavvy.api.middleware import require_admin
from cardsavvy.db.session import get_db
from cardsavvy.models.catalog import Article, Bank, Calculator, Card, Category
from cardsavvy.schemas.catalog import (
    ArticleCreate,
    ArticleRead,
    ArticleUpdate,
    BankCreate,
    BankRead,
    BankUpdate,
    CalculatorCreate,
    CalculatorRead,
    CalculatorUpdate,
    CardCreate,
    CardRead,
    CardUpdate,
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
)
from cardsavvy.services.catalog import (
    ArticleRepository,
    CardRepository,
    CatalogConflict,
    CatalogRepository,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _not_found(label: str) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"status": "error", "code": 404, "message": f"{label} not found"},
    )


def _conflict(e: CatalogConflict) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"status": "error", "code": 409, "message": e.message},
    )


def register_resource(
    path: str,
    label: str,
    model: type,
    create_schema: type[BaseModel],
    update_schema: type[BaseModel],
    read_schema: type[BaseModel],
    with_list: bool = True,
) -> None:
    """Add get-by-id, create, update and delete routes (and optionally list) for one table."""

    if with_list:

        @router.get(f"/{path}", response_model=list[read_schema], name=f"list_{path}")
        async def list_items(db: AsyncSession = Depends(get_db)):
            return await CatalogRepository(db, model).list_all()

    @router.get(f"/{path}/{{item_id}}", response_model=read_schema, name=f"get_{path}")
    async def get_item(item_id: int, db: AsyncSession = Depends(get_db)):
        item = await CatalogRepository(db, model).get(item_id)
        if item is None:
            return _not_found(label)
        return item

    @router.post(
        f"/{path}", response_model=read_schema, status_code=201, name=f"create_{path}"
    )
    async def create_item(
        payload: create_schema,
        db: AsyncSession = Depends(get_db),
        _admin: int = Depends(require_admin),
    ):
        try:
            return await CatalogRepository(db, model).create(payload.model_dump())
        except CatalogConflict as e:
            return _conflict(e)

    @router.put(f"/{path}/{{item_id}}", response_model=read_schema, name=f"update_{path}")
    async def update_item(
        item_id: int,
        payload: update_schema,
        db: AsyncSession = Depends(get_db),
        _admin: int = Depends(require_admin),
    ):
        try:
            item = await CatalogRepository(db, model).update(
                item_id, payload.model_dump(exclude_unset=True)
            )
        except CatalogConflict as e:
            return _conflict(e)
        if item is None:
            return _not_found(label)
        return item

    @router.delete(f"/{path}/{{item_id}}", status_code=204, name=f"delete_{path}")
    async def delete_item(
        item_id: int,
        db: AsyncSession = Depends(get_db),
        _admin: int = Depends(require_admin),
    ):
        if not await CatalogRepository(db, model).delete(item_id):
            return _not_found(label)
        return Response(status_code=204)


@router.get("/cards", response_model=list[CardRead])
async def list_cards(
    category_id: int | None = Query(None, alias="categoryId"),
    bank_id: int | None = Query(None, alias="bankId"),
    featured: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """All cards, or those matching the first given filter: category, bank, featured."""
    repo = CardRepository(db)
    if category_id is not None:
        return await repo.by_category(category_id)
    if bank_id is not None:
        return await repo.by_bank(bank_id)
    if featured == "true":
        return await repo.featured()
    return await repo.list_all()


@router.get("/articles", response_model=list[ArticleRead])
async def list_articles(
    limit: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    repo = ArticleRepository(db)
    if limit:
        return await repo.recent(limit)
    return await repo.list_all()


register_resource("categories", "Category", Category, CategoryCreate, CategoryUpdate, CategoryRead)
register_resource("banks", "Bank", Bank, BankCreate, BankUpdate, BankRead)
register_resource("cards", "Card", Card, CardCreate, CardUpdate, CardRead, with_list=False)
register_resource(
    "articles", "Article", Article, ArticleCreate, ArticleUpdate, ArticleRead, with_list=False
)
register_resource(
    "calculators", "Calculator", Calculator, CalculatorCreate, CalculatorUpdate, CalculatorRead
)
