from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CategoryBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    image: str | None = Field(default=None, max_length=500, description="Image URL")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate category name - trim whitespace"""
        if not v or not v.strip():
            raise ValueError('Category name cannot be empty')
        return v.strip()


class CategoryCreate(CategoryBase):
    slug: str | None = Field(
        default=None,
        max_length=120,
        description="Unique URL key. Derived from the name when omitted.",
    )
    parent_id: str | None = Field(default=None, description="ID of the parent category for subcategories")

    @field_validator('slug')
    @classmethod
    def validate_slug(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    slug: str | None = Field(default=None, min_length=1, max_length=120)
    image: str | None = Field(default=None, max_length=500)

    @field_validator('name', 'slug')
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not v.strip():
            raise ValueError('Value cannot be empty')
        return v.strip()


class CategorySetParent(BaseModel):
    # null or absent moves the category to the root level
    parent_id: str | None = None


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    image: str | None = None
    parent_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CategoryTreeOut(CategoryOut):
    has_children: bool = False
    children: list["CategoryTreeOut"] = Field(default_factory=list)


# Update forward reference
CategoryTreeOut.model_rebuild()
