"""Domain events for the Category aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Category")
class CategoryCreated:
    __version__ = 1

    category_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    slug = String(required=True, max_length=120)
    parent_id = Identifier()
    level = Integer(required=True)


@marketplace.event(part_of="Category")
class CategoryUpdated:
    __version__ = 1

    category_id = Identifier(required=True)
    name = String(max_length=100)
    slug = String(max_length=120)
    description = String(max_length=500)


@marketplace.event(part_of="Category")
class CategoryMoved:
    """A category was re-attached to a different parent (or promoted to root)."""

    __version__ = 1

    category_id = Identifier(required=True)
    previous_parent_id = Identifier()
    new_parent_id = Identifier()
    level = Integer(required=True)


@marketplace.event(part_of="Category")
class CategoryReordered:
    __version__ = 1

    category_id = Identifier(required=True)
    previous_order = Integer()
    new_order = Integer(required=True)


@marketplace.event(part_of="Category")
class CategoryFeatured:
    __version__ = 1

    category_id = Identifier(required=True)
    is_featured = Boolean(required=True)


@marketplace.event(part_of="Category")
class CategoryDeactivated:
    __version__ = 1

    category_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)
