"""Verb and object enums plus the keyword tables the classifier matches on."""

from __future__ import annotations

from enum import StrEnum


class Verb(StrEnum):
    """What the invocation should do."""

    ADD = "add"
    DELETE = "del"
    MODIFY = "mod"
    EDIT = "edit"
    LIST = "list"
    GRAPH = "graph"
    SYNC = "sync"


class EntityKind(StrEnum):
    """Record kinds a command can target."""

    BIKE = "bike"
    BUY = "buy"
    RIDE = "ride"
    LUB = "lub"
    CAT = "cat"
    TAG = "tag"


# Exact tokens that set the verb. ``ls`` is an alias of ``list``.
VERB_KEYWORDS: dict[str, Verb] = {
    **{verb.value: verb for verb in Verb},
    "ls": Verb.LIST,
}

# Exact tokens that set the object. ``bike`` is only reachable through
# ``bike:CODE`` or the ``_CODE`` shorthand.
ENTITY_KEYWORDS: frozenset[str] = frozenset({"buy", "lub", "ride", "cat", "tag"})

# Kinds whose records carry tags through an association table.
TAGGED_KINDS: frozenset[EntityKind] = frozenset({EntityKind.BUY, EntityKind.RIDE})
