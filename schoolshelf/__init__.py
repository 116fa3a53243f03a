"""SchoolShelf: multi-tenant school library service."""

__version__ = "1.0.0"
