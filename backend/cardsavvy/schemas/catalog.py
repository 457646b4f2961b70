"""Request/response models for the catalog API.

JSON uses camelCase field names (``annualFee``, ``bankId``), matching what the
site's frontend sends and expects.
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SLUG_PATTERN = "^[a-z0-9-]+$"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Categories


class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1, pattern=SLUG_PATTERN)


class CategoryUpdate(CamelModel):
    name: str | None = Field(None, min_length=1)
    slug: str | None = Field(None, min_length=1, pattern=SLUG_PATTERN)


class CategoryRead(CategoryCreate):
    id: int


# Banks


class BankCreate(CamelModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1, pattern=SLUG_PATTERN)
    logo_url: str | None = None
    description: str | None = None


class BankUpdate(CamelModel):
    name: str | None = Field(None, min_length=1)
    slug: str | None = Field(None, min_length=1, pattern=SLUG_PATTERN)
    logo_url: str | None = None
    description: str | None = None


class BankRead(BankCreate):
    id: int


# Cards


class CardCreate(CamelModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1, pattern=SLUG_PATTERN)
    bank_id: int
    category_id: int
    annual_fee: str
    intro_apr: str | None = None
    regular_apr: str | None = None
    rewards_description: str | None = None
    rating: str | None = None
    featured: bool = False
    card_color_from: str = "#0F4C81"
    card_color_to: str = "#0F4C81"
    content_html: str | None = None
    youtube_video_id: str | None = None
    image_url: str | None = None
    apply_link: str | None = None
    publish_date: datetime | None = None


class CardUpdate(CamelModel):
    name: str | None = Field(None, min_length=1)
    slug: str | None = Field(None, min_length=1, pattern=SLUG_PATTERN)
    bank_id: int | None = None
    category_id: int | None = None
    annual_fee: str | None = None
    intro_apr: str | None = None
    regular_apr: str | None = None
    rewards_description: str | None = None
    rating: str | None = None
    featured: bool | None = None
    card_color_from: str | None = None
    card_color_to: str | None = None
    content_html: str | None = None
    youtube_video_id: str | None = None
    image_url: str | None = None
    apply_link: str | None = None
    publish_date: datetime | None = None


class CardRead(CardCreate):
    id: int


# Articles


class ArticleCreate(CamelModel):
    title: str = Field(..., min_length=3)
    slug: str = Field(..., min_length=3, pattern=SLUG_PATTERN)
    content: str = Field(..., min_length=1)
    content_html: str | None = None
    excerpt: str | None = None
    image_url: str | None = None
    publish_date: datetime
    category: str = Field(..., min_length=1)
    youtube_video_id: str | None = None


class ArticleUpdate(CamelModel):
    title: str | None = Field(None, min_length=3)
    slug: str | None = Field(None, min_length=3, pattern=SLUG_PATTERN)
    content: str | None = Field(None, min_length=1)
    content_html: str | None = None
    excerpt: str | None = None
    image_url: str | None = None
    publish_date: datetime | None = None
    category: str | None = Field(None, min_length=1)
    youtube_video_id: str | None = None


class ArticleRead(ArticleCreate):
    id: int


# Calculators


class CalculatorCreate(CamelModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1, pattern=SLUG_PATTERN)
    description: str = Field(..., min_length=1)
    icon_name: str = Field(..., min_length=1)


class CalculatorUpdate(CamelModel):
    name: str | None = Field(None, min_length=1)
    slug: str | None = Field(None, min_length=1, pattern=SLUG_PATTERN)
    description: str | None = Field(None, min_length=1)
    icon_name: str | None = Field(None, min_length=1)


class CalculatorRead(CalculatorCreate):
    id: int


# Auth


class LoginRequest(CamelModel):
    username_or_email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)


class UserRead(CamelModel):
    id: int
    username: str
    is_admin: bool
