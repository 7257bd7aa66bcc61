"""
Demo catalogue seeding, enabled with SEED_CATEGORIES=true.
"""
import logging

from storefront.db.session import AsyncSessionLocal
from storefront.repositories.category_repository import CategoryRepository
from storefront.schemas.category import CategoryCreate
from storefront.services.category_service import CategoryService

logger = logging.getLogger(__name__)

# (name, slug, children)
DEMO_CATALOGUE = [
    ("Clothing", "clothing", [
        ("Men", "clothing-men", [
            ("Shirts", "shirts-men", []),
            ("Pants", "pants-men", []),
            ("Jackets", "jackets-men", []),
        ]),
        ("Women", "clothing-women", [
            ("Dresses", "dresses", []),
            ("Blouses", "blouses", []),
            ("Skirts", "skirts", []),
        ]),
        ("Kids", "clothing-kids", []),
    ]),
    ("Accessories", "accessories", [
        ("Bags & Purses", "bags-purses", []),
        ("Jewelry", "jewelry", []),
        ("Watches", "watches", []),
    ]),
]


async def _create_branch(service: CategoryService, entries, parent_id=None) -> int:
    created = 0
    for name, slug, children in entries:
        category = await service.create(CategoryCreate(name=name, slug=slug, parent_id=parent_id))
        created += 1
        created += await _create_branch(service, children, category.id)
    return created


async def seed_categories(db) -> int:
    """Create the demo catalogue unless categories already exist. Returns the number created."""
    if await CategoryRepository(db).count() > 0:
        logger.info("Categories already exist, skipping seed")
        return 0
    created = await _create_branch(CategoryService(db), DEMO_CATALOGUE)
    logger.info("Seeded %d categories", created)
    return created


async def run_seed() -> None:
    async with AsyncSessionLocal() as db:
        await seed_categories(db)
