"""
Database Helper Utilities for Concurrency Control

Provides:
- Database dialect detection (PostgreSQL vs SQLite)
- Row locking helpers used by inventory claims
"""

import logging
from typing import Optional, TypeVar, Type, List
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

T = TypeVar('T')


def is_postgres(db: Session) -> bool:
    """Check if the database is PostgreSQL"""
    try:
        dialect = db.bind.dialect.name
        return dialect == 'postgresql'
    except Exception:
        return False


def acquire_row_lock(
    db: Session,
    model: Type[T],
    filter_condition
) -> Optional[T]:
    """
    Acquire a row-level lock on a database record.

    Args:
        db: Database session
        model: SQLAlchemy model class
        filter_condition: Filter to find the row

    Returns:
        The locked model instance, or None if not found

    Example:
        listing = acquire_row_lock(db, Listing, Listing.id == listing_id)
    """
    query = db.query(model).filter(filter_condition)

    # Only apply locking on PostgreSQL
    if is_postgres(db):
        query = query.with_for_update()

    return query.first()


def lock_rows(
    db: Session,
    model: Type[T],
    *filter_conditions,
    order_by=None
) -> List[T]:
    """
    Lock every row matching the filters for the rest of the transaction.

    Rows are locked in `order_by` order so that two transactions claiming
    overlapping ranges always queue up instead of deadlocking.
    """
    query = db.query(model).filter(*filter_conditions)

    if order_by is not None:
        query = query.order_by(order_by)

    if is_postgres(db):
        query = query.with_for_update()

    return query.all()
