# ABOUTME: Codec for database/retention-policy identifiers used by Kapacitor tasks
# ABOUTME: Converts between "db"."rp" wire strings and structured identifier pairs

"""
Qualified identifier parsing and serialization.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

Kapacitor tasks declare which data they consume as a list of
database/retention-policy pairs (DBRPs). Resource definitions carry these as
flat strings:

    database_retention_policies = ["telegraf.autogen", "\"metrics\".\"1w\""]

while the task API and the rest of this package work with structured pairs:

    [QualifiedIdentifier("telegraf", "autogen"), QualifiedIdentifier("metrics", "1w")]

This module converts in both directions:

    parse(["telegraf.autogen"])              -> [QualifiedIdentifier("telegraf", "autogen")]
    serialize([QualifiedIdentifier("a", "b")]) -> ["a.b"]

=============================================================================
WIRE FORM RULES
=============================================================================

1. Every entry must split on "." into EXACTLY two segments.
2. Double quotes are stripped from each segment by plain character removal.
   Quotes let users write "mydb"."myrp" but they do NOT protect dots:
   "my.db"."my.rp" still has four segments and is rejected.
3. Serialization always emits the bare form namespace.qualifier.

For values with no "." or '"' characters the two directions are exact
inverses:

    parse(serialize(x)) == x
    serialize(parse(s)) == s

An identifier holding a literal quote or dot cannot be represented
losslessly. That is a known limitation of the wire form.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

SEPARATOR = "."
QUOTE = '"'
EXPECTED_FORM = '"my_db"."my_rp"'


class MalformedIdentifierError(ValueError):
    """
    Raised when a wire string does not split into exactly two segments.

    Subclasses ValueError so callers validating user input can catch both
    this and pydantic/enum parsing failures with one handler.
    """

    def __init__(self, raw: str) -> None:
        self.raw = raw
        super().__init__(
            f"error parsing database retention policy: {raw}. Expected form: {EXPECTED_FORM}"
        )


@dataclass(frozen=True)
class QualifiedIdentifier:
    """
    A (namespace, qualifier) pair, e.g. database and retention policy.

    frozen=True makes instances immutable and hashable. They are created
    fresh on every read/write cycle and never modified afterwards.
    """

    namespace: str
    qualifier: str

    def __str__(self) -> str:
        return f"{self.namespace}{SEPARATOR}{self.qualifier}"

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> QualifiedIdentifier:
        """Create from the task API's {"db": ..., "rp": ...} object."""
        return cls(namespace=data.get("db", ""), qualifier=data.get("rp", ""))

    def to_wire(self) -> dict[str, str]:
        """Convert to the task API's {"db": ..., "rp": ...} object."""
        return {"db": self.namespace, "rp": self.qualifier}


def parse_one(raw: str) -> QualifiedIdentifier:
    """
    Parse a single wire string.

    Args:
        raw: String such as "mydb.myrp" or '"mydb"."myrp"'

    Returns:
        QualifiedIdentifier with quotes removed from both parts

    Raises:
        MalformedIdentifierError: If raw does not contain exactly one dot
    """
    segments = raw.split(SEPARATOR)
    if len(segments) != 2:
        raise MalformedIdentifierError(raw)

    namespace, qualifier = (segment.replace(QUOTE, "") for segment in segments)
    return QualifiedIdentifier(namespace=namespace, qualifier=qualifier)


def parse(raw: Sequence[str]) -> list[QualifiedIdentifier]:
    """
    Parse an ordered list of wire strings.

    Stops at the first malformed entry; nothing is returned in that case.

    Args:
        raw: Wire strings in resource order

    Returns:
        Identifiers in the same order as the input

    Raises:
        MalformedIdentifierError: On the first entry that does not parse
    """
    return [parse_one(entry) for entry in raw]


def serialize(identifiers: Iterable[QualifiedIdentifier]) -> list[str]:
    """Render identifiers in their canonical bare dotted form, preserving order."""
    return [str(identifier) for identifier in identifiers]
