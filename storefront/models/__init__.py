# Import all models to ensure they are registered with SQLAlchemy
from storefront.models.category import Category, CategoryClosure

__all__ = [
    "Category",
    "CategoryClosure",
]
