"""Category management — commands and handlers.

The handler owns the rules that span several categories: parents must
exist, a category may not move below itself or one of its descendants,
moved subtrees are re-levelled, and no category may sit deeper than the
configured maximum level.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.catalogue.category.category import Category
from marketplace.config import get_settings
from marketplace.domain import marketplace, logger
from marketplace.shared.errors import load
from marketplace.shared.policy import Action, Actor, authorize
from marketplace.shared.slug import slugify


@marketplace.command(part_of="Category")
class CreateCategory:
    name: String(required=True, max_length=100)
    slug: String(max_length=120)
    description: String(max_length=500)
    parent_id: Identifier()
    sort_order: Integer(default=0)
    is_featured: Boolean(default=False)
    actor_id: Identifier(required=True)
    actor_role: String(required=True, max_length=20)


@marketplace.command(part_of="Category")
class UpdateCategory:
    category_id: Identifier(required=True)
    name: String(max_length=100)
    slug: String(max_length=120)
    description: String(max_length=500)
    parent_id: Identifier()
    make_root: Boolean(default=False)
    actor_id: Identifier(required=True)
    actor_role: String(required=True, max_length=20)


@marketplace.command(part_of="Category")
class ReorderCategory:
    category_id: Identifier(required=True)
    sort_order: Integer(required=True)
    actor_id: Identifier(required=True)
    actor_role: String(required=True, max_length=20)


@marketplace.command(part_of="Category")
class FeatureCategory:
    category_id: Identifier(required=True)
    is_featured: Boolean(default=True)
    actor_id: Identifier(required=True)
    actor_role: String(required=True, max_length=20)


@marketplace.command(part_of="Category")
class DeactivateCategory:
    category_id: Identifier(required=True)
    actor_id: Identifier(required=True)
    actor_role: String(required=True, max_length=20)


def _authorize(command):
    actor = Actor(user_id=str(command.actor_id), role=command.actor_role)
    authorize(actor, Action.MANAGE_CATALOGUE, message="Only catalogue managers can change categories")
    return actor


def _check_depth(level):
    max_level = get_settings().max_category_level
    if level > max_level:
        raise ValidationError({"level": [f"Category hierarchy cannot go deeper than level {max_level}"]})


def _ensure_unique_slug(repo, slug, category_id=None):
    existing = repo.find_by_slug(slug)
    if existing is not None and str(existing.id) != str(category_id):
        raise ValidationError({"slug": [f"Slug '{slug}' is already in use"]})


@marketplace.command_handler(part_of=Category)
class ManageCategoryHandler:
    @handle(CreateCategory)
    def create_category(self, command):
        _authorize(command)
        repo = current_domain.repository_for(Category)

        parent = None
        if command.parent_id:
            parent = load(repo, command.parent_id, "Parent category")
            _check_depth(parent.level + 1)

        slug = slugify(command.slug or command.name)
        if not slug:
            raise ValidationError({"slug": ["Slug must contain at least one letter or digit"]})
        _ensure_unique_slug(repo, slug)

        category = Category.create(
            name=command.name,
            parent=parent,
            slug=slug,
            description=command.description,
            sort_order=command.sort_order or 0,
            is_featured=bool(command.is_featured),
        )
        repo.add(category)

        logger.info("category_created", category_id=str(category.id), level=category.level)
        return str(category.id)

    @handle(UpdateCategory)
    def update_category(self, command):
        _authorize(command)
        repo = current_domain.repository_for(Category)
        category = load(repo, command.category_id, "Category")

        if command.slug is not None:
            _ensure_unique_slug(repo, slugify(command.slug), category.id)

        changes = {
            field: getattr(command, field)
            for field in ("name", "slug", "description")
            if getattr(command, field) is not None
        }
        if changes:
            category.update_details(**changes)

        if command.parent_id or command.make_root:
            self._move(repo, category, command.parent_id if not command.make_root else None)

        repo.add(category)

    def _move(self, repo, category, parent_id):
        parent = None
        if parent_id:
            if str(parent_id) == str(category.id):
                raise ValidationError({"parent_id": ["A category cannot be its own parent"]})
            parent = load(repo, parent_id, "Parent category")

        descendants = repo.descendants_of(category.id)
        if parent is not None and str(parent.id) in {str(d.id) for d in descendants}:
            raise ValidationError({"parent_id": ["A category cannot be moved below one of its descendants"]})

        new_level = parent.level + 1 if parent else 0
        shift = new_level - category.level
        deepest = max([d.level for d in descendants] + [category.level]) + shift
        _check_depth(deepest)

        category.move_under(parent)
        for descendant in descendants:
            descendant.relevel(descendant.level + shift)
            repo.add(descendant)

        logger.info(
            "category_moved",
            category_id=str(category.id),
            parent_id=str(parent.id) if parent else None,
            relevelled=len(descendants),
        )

    @handle(ReorderCategory)
    def reorder_category(self, command):
        _authorize(command)
        repo = current_domain.repository_for(Category)
        category = load(repo, command.category_id, "Category")
        category.reorder(command.sort_order)
        repo.add(category)

    @handle(FeatureCategory)
    def feature_category(self, command):
        _authorize(command)
        repo = current_domain.repository_for(Category)
        category = load(repo, command.category_id, "Category")
        category.set_featured(command.is_featured)
        repo.add(category)

    @handle(DeactivateCategory)
    def deactivate_category(self, command):
        _authorize(command)
        repo = current_domain.repository_for(Category)
        category = load(repo, command.category_id, "Category")
        category.deactivate()
        repo.add(category)
