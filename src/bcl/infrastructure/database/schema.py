"""SQLAlchemy Core table definitions for the bcl database.

Dates are stored as ISO ``YYYY-MM-DD`` text so that string comparison is
date order. Records referenced by rides and lubrications are protected
with RESTRICT; association rows follow their owners with CASCADE.
"""

from __future__ import annotations

from sqlalchemy import (
    REAL,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

category = Table(
    "category",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("abbr", Text, nullable=False, unique=True),
    Column("name", Text, nullable=False, unique=True),
)

bike = Table(
    "bike",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "category_id",
        Integer,
        ForeignKey("category.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("id_in_cat", Integer, nullable=False),
    Column("name", Text, nullable=False, unique=True),
    Column("datestamp", Text, nullable=False),
    UniqueConstraint("category_id", "id_in_cat"),
)

buy = Table(
    "buy",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False),
    Column("price", REAL, nullable=False),
    Column("datestamp", Text, nullable=False),
)

ride = Table(
    "ride",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("bike_id", Integer, ForeignKey("bike.id", ondelete="RESTRICT"), nullable=False),
    Column("datestamp", Text, nullable=False),
    Column("distance", REAL, nullable=False),
    Column("annotation", Text),
)

chain_lubrication = Table(
    "chain_lubrication",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("bike_id", Integer, ForeignKey("bike.id", ondelete="RESTRICT"), nullable=False),
    Column("datestamp", Text, nullable=False),
    Column("distance", REAL, nullable=False, default=0.0, server_default="0.0"),
    Column("annotation", Text),
)

tag = Table(
    "tag",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False, unique=True),
)

# ---------------------------------------------------------------------------
# Associations
# ---------------------------------------------------------------------------

tag_to_ride = Table(
    "tag_to_ride",
    metadata,
    Column("tag_id", Integer, ForeignKey("tag.id", ondelete="CASCADE"), nullable=False),
    Column("ride_id", Integer, ForeignKey("ride.id", ondelete="CASCADE"), nullable=False),
    UniqueConstraint("tag_id", "ride_id"),
)

tag_to_buy = Table(
    "tag_to_buy",
    metadata,
    Column("tag_id", Integer, ForeignKey("tag.id", ondelete="CASCADE"), nullable=False),
    Column("buy_id", Integer, ForeignKey("buy.id", ondelete="CASCADE"), nullable=False),
    UniqueConstraint("tag_id", "buy_id"),
)

buy_to_bike = Table(
    "buy_to_bike",
    metadata,
    Column("buy_id", Integer, ForeignKey("buy.id", ondelete="CASCADE"), nullable=False),
    Column("bike_id", Integer, ForeignKey("bike.id", ondelete="CASCADE"), nullable=False),
    UniqueConstraint("buy_id", "bike_id"),
)

buy_to_category = Table(
    "buy_to_category",
    metadata,
    Column("buy_id", Integer, ForeignKey("buy.id", ondelete="CASCADE"), nullable=False),
    Column(
        "category_id",
        Integer,
        ForeignKey("category.id", ondelete="CASCADE"),
        nullable=False,
    ),
    UniqueConstraint("buy_id", "category_id"),
)

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_bike_category", bike.c.category_id)
Index("ix_ride_bike", ride.c.bike_id)
Index("ix_ride_datestamp", ride.c.datestamp)
Index("ix_lub_bike", chain_lubrication.c.bike_id)
Index("ix_buy_datestamp", buy.c.datestamp)
Index("ix_tag_to_ride_ride", tag_to_ride.c.ride_id)
Index("ix_tag_to_buy_buy", tag_to_buy.c.buy_id)
