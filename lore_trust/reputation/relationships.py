"""
Relationship reconciliation: raw directed declarations -> display relations.

Every stored relationship is seen from both ends (outgoing for the source,
incoming for the target). This module collapses those observations into one
display relation per real-world link, using fixed lookup tables:

- complementary pairs (MyPart/PartOf, Employer/Employee, ...): one relation per
  pair, confirmed when both sides are declared;
- symmetric types (Spouse, FactionMember, ...): shown only when both parties
  declared them, once;
- plain types: always shown; mutual when declared both ways, confirmed from the
  confirmed index.

It also derives confirmed marks (declarations answered by their paired type)
and per-account connection counts used for rater weighting.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from lore_trust.reputation.types import RATING_LETTERS

ConfirmedMark = tuple[str, str, str]
"""(source_account_id, target_account_id, relation_type) of a corroborated declaration."""


class Direction(str, Enum):
    OUTGOING = "outgoing"
    INCOMING = "incoming"


class RelationKind(Enum):
    COMPLEMENTARY = "complementary"
    SYMMETRIC = "symmetric"
    PLAIN = "plain"
    RATING = "rating"


@dataclass(frozen=True)
class CategoryDef:
    name: str
    color: str
    types: tuple[str, ...]


@dataclass(frozen=True)
class RelationTables:
    """Immutable lookup tables driving reconciliation. Inject alternatives in tests."""

    categories: tuple[CategoryDef, ...]
    complementary: Mapping[str, str]
    symmetric: frozenset[str]
    confirmation_pairs: Mapping[str, str]
    """relation_type -> type the counterpart must declare back for a confirmed mark."""
    rating_types: frozenset[str] = frozenset(RATING_LETTERS)
    _category_index: Mapping[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index: dict[str, int] = {}
        for i, cat in enumerate(self.categories):
            for relation_type in cat.types:
                index.setdefault(relation_type, i)
        object.__setattr__(self, "_category_index", MappingProxyType(index))
        object.__setattr__(self, "complementary", MappingProxyType(dict(self.complementary)))
        object.__setattr__(self, "confirmation_pairs", MappingProxyType(dict(self.confirmation_pairs)))

    def kind_of(self, relation_type: str) -> RelationKind | None:
        """Resolve a relation type once; None for types absent from every table."""
        if relation_type in self.rating_types:
            return RelationKind.RATING
        if relation_type in self.complementary:
            return RelationKind.COMPLEMENTARY
        if relation_type in self.symmetric:
            return RelationKind.SYMMETRIC
        if relation_type in self._category_index:
            return RelationKind.PLAIN
        return None

    def category_index(self, relation_type: str) -> int | None:
        return self._category_index.get(relation_type)


DEFAULT_CATEGORIES: tuple[CategoryDef, ...] = (
    CategoryDef("FAMILY", "#f85149", ("OneFamily", "Spouse", "Guardian", "Ward", "Sympathy", "Love", "Divorce")),
    CategoryDef("WORK", "#58a6ff", ("Employer", "Employee", "Contractor", "Client")),
    CategoryDef("NETWORK", "#a371f7", ("Partnership", "Collaboration", "MyPart", "PartOf", "RecommendToMTLA")),
    CategoryDef(
        "OWNERSHIP",
        "#f0b429",
        ("OwnershipFull", "OwnershipMajority", "OwnershipMinority", "Owner", "OwnerMajority", "OwnerMinority"),
    ),
    CategoryDef("SOCIAL", "#00ff88", ("WelcomeGuest", "FactionMember")),
)


def _both_ways(pairs: Iterable[tuple[str, str]]) -> dict[str, str]:
    out: dict[str, str] = {}
    for a, b in pairs:
        out[a] = b
        out[b] = a
    return out


DEFAULT_COMPLEMENTARY = _both_ways([
    ("MyPart", "PartOf"),
    ("Guardian", "Ward"),
    ("OwnershipFull", "Owner"),
    ("OwnershipMajority", "OwnerMajority"),
    ("OwnershipMinority", "OwnerMinority"),
    ("Employer", "Employee"),
])

DEFAULT_SYMMETRIC = frozenset({"FactionMember", "Partnership", "Collaboration", "Spouse", "OneFamily"})

# FactionMember is symmetric for display but never produces a confirmed mark.
DEFAULT_CONFIRMATION_PAIRS = {
    **DEFAULT_COMPLEMENTARY,
    **_both_ways([("Contractor", "Client")]),
    "OneFamily": "OneFamily",
    "Spouse": "Spouse",
    "Partnership": "Partnership",
    "Collaboration": "Collaboration",
}

DEFAULT_TABLES = RelationTables(
    categories=DEFAULT_CATEGORIES,
    complementary=DEFAULT_COMPLEMENTARY,
    symmetric=DEFAULT_SYMMETRIC,
    confirmation_pairs=DEFAULT_CONFIRMATION_PAIRS,
)


@dataclass(frozen=True)
class RelationshipDeclaration:
    """
    One stored relationship as seen from one account.

    source/target are the stored direction; direction says which end the
    viewing account is on. other_name is the display name of the other party.
    """

    source_account_id: str
    target_account_id: str
    relation_type: str
    relation_index: str = ""
    direction: Direction = Direction.OUTGOING
    other_name: str = ""

    @property
    def other_account_id(self) -> str:
        if self.direction is Direction.OUTGOING:
            return self.target_account_id
        return self.source_account_id

    @property
    def mark(self) -> ConfirmedMark:
        return (self.source_account_id, self.target_account_id, self.relation_type)


@dataclass
class Relationship:
    """A relation ready for display."""

    type: str
    target_id: str
    target_name: str
    direction: Direction
    is_mutual: bool = False
    is_confirmed: bool = False


@dataclass
class RelationshipCategory:
    name: str
    color: str
    relationships: list[Relationship] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.relationships


class RelationshipReconciler:
    """Classifies declarations using injected RelationTables."""

    def __init__(self, tables: RelationTables = DEFAULT_TABLES) -> None:
        self.tables = tables

    # ------------------------ confirmed marks ------------------------

    def confirmed_marks(self, declarations: Iterable[RelationshipDeclaration]) -> set[ConfirmedMark]:
        """
        Return marks for declarations answered by their paired type.

        (A, B, Employer) is marked when (B, A, Employee) is stored; the reverse
        declaration is marked by the same rule, so membership is symmetric.
        Direction of observation is ignored: only stored source/target matter.
        """
        stored = {d.mark for d in declarations}
        marks: set[ConfirmedMark] = set()
        for source, target, relation_type in stored:
            paired = self.tables.confirmation_pairs.get(relation_type)
            if paired is None or source == target:
                continue
            if (target, source, paired) in stored:
                marks.add((source, target, relation_type))
        return marks

    def confirmed_index(self, account_id: str, declarations: Iterable[RelationshipDeclaration]) -> set[ConfirmedMark]:
        """Confirmed marks touching one account."""
        return {
            m for m in self.confirmed_marks(declarations)
            if m[0] == account_id or m[1] == account_id
        }

    def connection_counts(self, declarations: Iterable[RelationshipDeclaration]) -> dict[str, int]:
        """
        Confirmed connections per account, counted per stored declaration.

        Every (declaration, answering declaration) pair is one confirmed
        connection for both its source and its target, so a type declared
        under several relation indexes counts once per index on each side.
        Accounts with none are absent.
        """
        stored = {(d.source_account_id, d.target_account_id, d.relation_type, d.relation_index) for d in declarations}
        indexes_per_mark = Counter((source, target, relation_type) for source, target, relation_type, _ in stored)

        counts: dict[str, int] = {}
        for source, target, relation_type, _ in stored:
            paired = self.tables.confirmation_pairs.get(relation_type)
            if paired is None or source == target:
                continue
            answers = indexes_per_mark.get((target, source, paired), 0)
            if answers:
                counts[source] = counts.get(source, 0) + answers
                counts[target] = counts.get(target, 0) + answers
        return counts

    # ------------------------ display grouping ------------------------

    def group(
        self,
        account_id: str,
        declarations: Iterable[RelationshipDeclaration],
        confirmed: set[ConfirmedMark] | None = None,
    ) -> list[RelationshipCategory]:
        """
        Organise one account's declarations (both directions) into categories.

        Returns every category in table order, empty ones included. Within a
        category, confirmed or mutual relations come first; ties keep input order.
        """
        declarations = [d for d in declarations if self._touches(account_id, d)]
        confirmed = confirmed or set()

        outgoing: set[tuple[str, str]] = set()
        incoming: set[tuple[str, str]] = set()
        for d in declarations:
            key = (d.other_account_id, d.relation_type)
            if d.direction is Direction.OUTGOING:
                outgoing.add(key)
            else:
                incoming.add(key)
        present = outgoing | incoming

        processed: set[tuple[str, ...]] = set()
        buckets: list[list[Relationship]] = [[] for _ in self.tables.categories]

        for d in declarations:
            kind = self.tables.kind_of(d.relation_type)
            cat_idx = self.tables.category_index(d.relation_type)
            if kind is None or kind is RelationKind.RATING or cat_idx is None:
                continue
            other = d.other_account_id

            if kind is RelationKind.COMPLEMENTARY:
                complement = self.tables.complementary[d.relation_type]
                type_a, type_b = sorted((d.relation_type, complement))
                pair_key = (other, type_a, type_b, "complementary")
                if pair_key in processed:
                    continue
                processed.add(pair_key)
                buckets[cat_idx].append(
                    Relationship(
                        type=d.relation_type,
                        target_id=other,
                        target_name=d.other_name,
                        direction=d.direction,
                        is_mutual=False,
                        is_confirmed=(other, complement) in present,
                    )
                )
                continue

            key = (other, d.relation_type)
            is_mutual = key in outgoing and key in incoming
            if kind is RelationKind.SYMMETRIC and not is_mutual:
                continue
            if is_mutual:
                dedupe_key = (other, d.relation_type, "mutual")
                if dedupe_key in processed:
                    continue
                processed.add(dedupe_key)

            buckets[cat_idx].append(
                Relationship(
                    type=d.relation_type,
                    target_id=other,
                    target_name=d.other_name,
                    direction=d.direction,
                    is_mutual=is_mutual,
                    is_confirmed=d.mark in confirmed,
                )
            )

        for bucket in buckets:
            bucket.sort(key=lambda r: not (r.is_confirmed or r.is_mutual))

        return [
            RelationshipCategory(name=cat.name, color=cat.color, relationships=buckets[i])
            for i, cat in enumerate(self.tables.categories)
        ]

    @staticmethod
    def _touches(account_id: str, d: RelationshipDeclaration) -> bool:
        if d.direction is Direction.OUTGOING:
            return d.source_account_id == account_id
        return d.target_account_id == account_id
