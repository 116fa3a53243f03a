"""SQLAlchemy model package for the tenant-aware schema."""

from schoolshelf.models.base import Base
from schoolshelf.models.catalog import Book, Category
from schoolshelf.models.loan import Favorite, Loan
from schoolshelf.models.membership import Membership
from schoolshelf.models.tenant import Tenant, TenantSettings

__all__ = [
    "Base",
    "Book",
    "Category",
    "Favorite",
    "Loan",
    "Membership",
    "Tenant",
    "TenantSettings",
]
