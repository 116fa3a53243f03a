"""Per-member favorite books."""

from __future__ import annotations

from schoolshelf.auth.tenant_context import TenantScope
from schoolshelf.core.exceptions import NotFoundError
from schoolshelf.models import Book, Favorite, Membership
from schoolshelf.services.base_service import BaseService


class FavoriteService(BaseService):
    def list_favorites(self, member: Membership) -> list[Favorite]:
        return (
            self.db.query(Favorite)
            .filter(Favorite.member_id == member.id)
            .order_by(Favorite.created_at.desc())
            .all()
        )

    def is_favorite(self, member: Membership, book_id: str) -> bool:
        return (
            self.db.query(Favorite.id)
            .filter(Favorite.member_id == member.id, Favorite.book_id == book_id)
            .first()
            is not None
        )

    def toggle(self, scope: TenantScope, member: Membership, book_id: str) -> bool:
        """Add or remove `book_id`; returns the new favorite state."""
        tenant_id = scope.require_tenant()
        book = self.db.get(Book, book_id)
        if book is None or book.tenant_id != tenant_id:
            raise NotFoundError("Book not found.")

        existing = (
            self.db.query(Favorite)
            .filter(Favorite.member_id == member.id, Favorite.book_id == book.id)
            .first()
        )
        if existing is not None:
            self.db.delete(existing)
            self.commit()
            return False

        self.db.add(Favorite(tenant_id=tenant_id, member_id=member.id, book_id=book.id))
        self.commit()
        return True
