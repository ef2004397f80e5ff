"""
Ordering Policy
===============

Ranks participants when capacity has to be taken away or given back.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Tuple

from ..resources.participant import Participant


@dataclass(frozen=True)
class OrderingPolicy:
    """
    Named participant ordering.

    Attributes:
        name: Policy identifier (for logs and reports)
        key: Sort key; participants with smaller keys come first
    """
    name: str
    key: Callable[[Participant], Tuple]

    def sort(self, participants: Iterable[Participant]) -> List[Participant]:
        """Return a new, stably sorted list."""
        return sorted(participants, key=self.key)


def _oldest_intervention_key(p: Participant) -> Tuple[float, float]:
    # never-touched participants sort first
    ts = float("-inf") if p.last_intervention_at is None else p.last_intervention_at
    return (ts, -p.flex_contract)


# Longest-untouched first, then largest flex contract first.
# Used for restriction and, unchanged, as the default release order.
OLDEST_INTERVENTION_FIRST = OrderingPolicy(
    name="oldest_intervention_largest_flex",
    key=_oldest_intervention_key,
)
