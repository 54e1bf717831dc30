from protean.domain import Domain
from sqlalchemy import create_engine


def setup_db(domain: Domain):
    """Setup database schema"""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in ("sqlite", "postgresql"):
                engine = create_engine(provider.conn_info["database_uri"])

                for _, aggregate_record in domain.registry.aggregates.items():
                    if aggregate_record.cls.meta_.provider == provider.name:
                        domain.repository_for(aggregate_record.cls)._dao  # noqa: B018

                for _, entity_record in domain.registry.entities.items():
                    if entity_record.cls.meta_.provider == provider.name:
                        domain.repository_for(entity_record.cls)._dao  # noqa: B018

                provider._metadata.create_all(engine)


def drop_db(domain: Domain):
    """Drop database schema"""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in ("sqlite", "postgresql"):
                engine = create_engine(provider.conn_info["database_uri"])
                provider._metadata.drop_all(engine)


def fetch_all(queryset):
    """Evaluate a queryset past the provider's default page size.

    Protean querysets return at most ``limit`` records (100 by default) along
    with the total match count; re-issue the query once when the first page is
    short of the total.
    """
    result = queryset.all()
    if result.total > len(result.items):
        result = queryset.limit(result.total).all()
    return list(result.items)


def paginate(records, page=1, limit=10):
    """Slice an already-sorted list into a page plus pagination metadata."""
    page = max(page, 1)
    limit = max(limit, 1)
    start = (page - 1) * limit
    total = len(records)
    return records[start : start + limit], {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": (total + limit - 1) // limit,
    }
