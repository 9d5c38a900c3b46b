"""Migration ordering strategies.

Django migrations of different apps interleave through declared
dependencies, so their apply order is a topological sort over
``depends_on`` (plus ``run_before`` reverse edges).  Prisma migration
directories carry a sortable timestamp prefix, so their order is the lexical
order of ``sequence_key``.  Both are exposed behind one ``OrderingStrategy``
protocol so the migration status reconciler never branches on ecosystem.

Usage:
    from orm_drift.orm.ordering import ordering_for

    ordered = ordering_for(config.kind).order(migrations)
"""

import heapq
import logging
from collections.abc import Sequence
from typing import Protocol

from orm_drift.orm.models import Migration, ORMKind

logger = logging.getLogger(__name__)


class OrderingStrategy(Protocol):
    """Produces the display (apply) order of a migration set."""

    def order(self, migrations: Sequence[Migration]) -> list[Migration]:
        ...


def _tie_break_key(migration: Migration) -> tuple[str, str, str]:
    return (migration.app_name or "", migration.sequence_key or migration.name, migration.id)


class DependencyOrdering:
    """Topological order over ``depends_on`` and ``run_before``.

    Kahn's algorithm with a heap of ready migrations keyed by
    ``(app_name, sequence_key, id)`` so the result is deterministic and
    follows per-app numbering wherever dependencies allow.

    Dependencies on ids outside the given set (third-party apps, squashed
    history) are ignored.  If the graph contains a cycle the remaining
    migrations are appended in tie-break order and a warning is logged.

    Example:
        >>> ordered = DependencyOrdering().order(migrations)
        >>> [m.id for m in ordered]
        ['accounts.0001_initial', 'blog.0001_initial', 'accounts.0002_profile']
    """

    def order(self, migrations: Sequence[Migration]) -> list[Migration]:
        by_id: dict[str, Migration] = {m.id: m for m in migrations}

        # Edges: dependency -> dependents
        dependents: dict[str, set[str]] = {m_id: set() for m_id in by_id}
        in_degree: dict[str, int] = {m_id: 0 for m_id in by_id}

        def add_edge(before: str, after: str) -> None:
            if before == after or before not in by_id or after not in by_id:
                return
            if after in dependents[before]:
                return
            dependents[before].add(after)
            in_degree[after] += 1

        for migration in by_id.values():
            for dep in migration.depends_on:
                add_edge(dep, migration.id)
            for target in migration.run_before:
                add_edge(migration.id, target)

        ready: list[tuple[tuple[str, str, str], str]] = [
            (_tie_break_key(by_id[m_id]), m_id)
            for m_id, degree in in_degree.items()
            if degree == 0
        ]
        heapq.heapify(ready)

        ordered: list[Migration] = []
        while ready:
            _, m_id = heapq.heappop(ready)
            ordered.append(by_id[m_id])
            for child in dependents[m_id]:
                in_degree[child] -= 1
                if in_degree[child] == 0:
                    heapq.heappush(ready, (_tie_break_key(by_id[child]), child))

        if len(ordered) < len(by_id):
            placed = {m.id for m in ordered}
            remaining = sorted(
                (m for m in by_id.values() if m.id not in placed),
                key=_tie_break_key,
            )
            logger.warning(
                "Migration dependency cycle among %s; appending in name order",
                ", ".join(m.id for m in remaining),
            )
            ordered.extend(remaining)

        return ordered


class SequenceOrdering:
    """Lexical order of ``sequence_key`` (chronological by construction)."""

    def order(self, migrations: Sequence[Migration]) -> list[Migration]:
        return sorted(migrations, key=lambda m: (m.sequence_key, m.id))


def ordering_for(kind: ORMKind) -> OrderingStrategy:
    """Return the ordering strategy for an ecosystem."""
    if kind is ORMKind.DJANGO:
        return DependencyOrdering()
    return SequenceOrdering()
