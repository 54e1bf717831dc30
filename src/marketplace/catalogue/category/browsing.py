"""Read-side queries over the category tree."""

from protean.utils.globals import current_domain

from marketplace.catalogue.category.category import Category
from marketplace.shared.errors import NotFound, load


def category_payload(category: Category) -> dict:
    return {
        "id": str(category.id),
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "parent_id": str(category.parent_id) if category.parent_id else None,
        "level": category.level,
        "is_active": category.is_active,
        "is_featured": category.is_featured,
        "sort_order": category.sort_order,
    }


def list_tree() -> list[dict]:
    """Active roots, each carrying its active direct children.

    Both levels are ordered by ``sort_order`` and then by name.
    """
    repo = current_domain.repository_for(Category)
    tree = []
    for root in repo.active_roots():
        node = category_payload(root)
        node["children"] = [category_payload(child) for child in repo.active_children(root.id)]
        tree.append(node)
    return tree


def list_featured() -> list[dict]:
    return [category_payload(c) for c in current_domain.repository_for(Category).featured()]


def get_category(category_id) -> dict:
    repo = current_domain.repository_for(Category)
    category = load(repo, category_id, "Category")
    node = category_payload(category)
    node["children"] = [category_payload(child) for child in repo.active_children(category.id)]
    return node


def get_category_by_slug(slug) -> dict:
    repo = current_domain.repository_for(Category)
    category = repo.find_by_slug(slug)
    if category is None:
        raise NotFound("Category not found")
    return get_category(category.id)
