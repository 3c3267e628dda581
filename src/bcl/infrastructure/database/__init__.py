"""SQLite database engine and schema via SQLAlchemy Core."""

from bcl.infrastructure.database.engine import create_db_engine, init_database
from bcl.infrastructure.database.schema import (
    bike,
    buy,
    buy_to_bike,
    buy_to_category,
    category,
    chain_lubrication,
    metadata,
    ride,
    tag,
    tag_to_buy,
    tag_to_ride,
)

__all__ = [
    "bike",
    "buy",
    "buy_to_bike",
    "buy_to_category",
    "category",
    "chain_lubrication",
    "create_db_engine",
    "init_database",
    "metadata",
    "ride",
    "tag",
    "tag_to_buy",
    "tag_to_ride",
]
