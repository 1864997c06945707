from .connection import (
    Base,
    async_session_maker,
    close_db,
    engine,
    get_db,
    get_db_context,
    init_db,
)
from .repositories import SqlPaymentRepository, SqlSellerRepository, SqlSubscriptionRepository

__all__ = [
    "Base",
    "engine",
    "async_session_maker",
    "get_db",
    "get_db_context",
    "init_db",
    "close_db",
    "SqlPaymentRepository",
    "SqlSellerRepository",
    "SqlSubscriptionRepository",
]
