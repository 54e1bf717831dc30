"""Repository for the Category aggregate."""

from marketplace.catalogue.category.category import Category
from marketplace.domain import marketplace
from marketplace.utils.db import fetch_all


def _display_key(category):
    return (category.sort_order or 0, (category.name or "").lower())


@marketplace.repository(part_of=Category)
class CategoryRepository:
    def find_by_slug(self, slug: str) -> Category | None:
        items = self._dao.query.filter(slug=slug).all().items
        return items[0] if items else None

    def all_categories(self) -> list[Category]:
        return fetch_all(self._dao.query)

    def active_roots(self) -> list[Category]:
        roots = [c for c in fetch_all(self._dao.query.filter(is_active=True)) if c.parent_id is None]
        return sorted(roots, key=_display_key)

    def active_children(self, parent_id) -> list[Category]:
        children = fetch_all(self._dao.query.filter(parent_id=str(parent_id), is_active=True))
        return sorted(children, key=_display_key)

    def featured(self) -> list[Category]:
        return sorted(fetch_all(self._dao.query.filter(is_featured=True, is_active=True)), key=_display_key)

    def descendants_of(self, category_id) -> list[Category]:
        """All categories below ``category_id``, parents before children."""
        by_parent = {}
        for category in self.all_categories():
            if category.parent_id is not None:
                by_parent.setdefault(str(category.parent_id), []).append(category)

        result = []
        frontier = [str(category_id)]
        seen = set(frontier)
        while frontier:
            current = frontier.pop(0)
            for child in by_parent.get(current, []):
                if str(child.id) in seen:
                    continue
                seen.add(str(child.id))
                result.append(child)
                frontier.append(str(child.id))
        return result
