"""Category aggregate root for the product hierarchy."""

from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String

from marketplace.catalogue.category.events import (
    CategoryCreated,
    CategoryDeactivated,
    CategoryFeatured,
    CategoryMoved,
    CategoryReordered,
    CategoryUpdated,
)
from marketplace.domain import marketplace
from marketplace.shared.slug import slugify

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()


@marketplace.aggregate
class Category:
    """A node in the category tree.

    Roots have no parent and sit at level 0; every child sits one level below
    its parent. The tree shape (no cycles, bounded depth) spans several
    categories and is enforced by the management handler, which sees them all.
    """

    name: String(required=True, max_length=100)
    slug: String(required=True, max_length=120, unique=True)
    description: String(max_length=500)
    parent_id: Identifier()
    level: Integer(default=0, min_value=0)
    is_active: Boolean(default=True)
    is_featured: Boolean(default=False)
    sort_order: Integer(default=0)
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def roots_sit_at_level_zero(self):
        if self.parent_id is None and self.level != 0:
            raise ValidationError({"level": ["Root categories must be at level 0"]})

    @invariant.post
    def cannot_be_its_own_parent(self):
        if self.parent_id is not None and str(self.parent_id) == str(self.id):
            raise ValidationError({"parent_id": ["A category cannot be its own parent"]})

    @property
    def is_root(self):
        return self.parent_id is None

    @classmethod
    def create(cls, name, parent=None, slug=None, description=None, sort_order=0, is_featured=False):
        now = datetime.now(UTC)
        category = cls(
            name=name,
            slug=slugify(slug or name),
            description=description,
            parent_id=parent.id if parent else None,
            level=parent.level + 1 if parent else 0,
            sort_order=sort_order,
            is_featured=is_featured,
            created_at=now,
            updated_at=now,
        )
        category.raise_(
            CategoryCreated(
                category_id=category.id,
                name=category.name,
                slug=category.slug,
                parent_id=category.parent_id,
                level=category.level,
            )
        )
        return category

    def update_details(self, name=_UNSET, slug=_UNSET, description=_UNSET):
        if name is not _UNSET:
            self.name = name
        if slug is not _UNSET:
            self.slug = slugify(slug)
        if description is not _UNSET:
            self.description = description
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CategoryUpdated(
                category_id=self.id,
                name=self.name,
                slug=self.slug,
                description=self.description,
            )
        )

    def move_under(self, parent):
        """Re-attach this category below ``parent`` (``None`` makes it a root)."""
        previous_parent_id = self.parent_id
        with atomic_change(self):
            self.parent_id = parent.id if parent else None
            self.level = parent.level + 1 if parent else 0
            self.updated_at = datetime.now(UTC)

        self.raise_(
            CategoryMoved(
                category_id=self.id,
                previous_parent_id=previous_parent_id,
                new_parent_id=self.parent_id,
                level=self.level,
            )
        )

    def relevel(self, level):
        """Adjust the level after an ancestor moved."""
        self.level = level
        self.updated_at = datetime.now(UTC)

    def reorder(self, sort_order):
        previous_order = self.sort_order
        self.sort_order = sort_order
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CategoryReordered(
                category_id=self.id,
                previous_order=previous_order,
                new_order=sort_order,
            )
        )

    def set_featured(self, featured):
        self.is_featured = bool(featured)
        self.updated_at = datetime.now(UTC)
        self.raise_(CategoryFeatured(category_id=self.id, is_featured=self.is_featured))

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"status": ["Category is already inactive"]})

        now = datetime.now(UTC)
        self.is_active = False
        self.updated_at = now

        self.raise_(
            CategoryDeactivated(
                category_id=self.id,
                deactivated_at=now,
            )
        )
