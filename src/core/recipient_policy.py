"""Recipient selection policies.

A policy turns the unread-load of every candidate into an ordered list of
receivers to try. Candidates whose load has reached the inbox capacity are
never returned. The selector walks the list and assigns the first candidate
that still has room when the write happens.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from collections.abc import Mapping


class RecipientSelectionPolicy(ABC):
    """Ordering strategy over eligible receivers."""

    name: str = ""

    @staticmethod
    def eligible(loads: Mapping[str, int], capacity: int) -> list[str]:
        """Return candidate ids whose unread-load is below capacity."""
        return [candidate for candidate, load in loads.items() if load < capacity]

    @abstractmethod
    def rank(self, loads: Mapping[str, int], capacity: int) -> list[str]:
        """Order eligible candidates, best first.

        Args:
            loads: Unread-load per candidate id.
            capacity: Inbox capacity; loads at or above it are ineligible.

        Returns:
            list[str]: Eligible candidate ids in the order to try them.
        """


class LeastLoadedPolicy(RecipientSelectionPolicy):
    """Prefer the candidate with the smallest unread-load.

    Ties are broken by candidate id so the choice is deterministic.
    """

    name = "least_loaded"

    def rank(self, loads: Mapping[str, int], capacity: int) -> list[str]:
        eligible = self.eligible(loads, capacity)
        return sorted(eligible, key=lambda candidate: (loads[candidate], candidate))


class UniformRandomPolicy(RecipientSelectionPolicy):
    """Pick uniformly among eligible candidates."""

    name = "uniform_random"

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def rank(self, loads: Mapping[str, int], capacity: int) -> list[str]:
        eligible = sorted(self.eligible(loads, capacity))
        self._rng.shuffle(eligible)
        return eligible


_POLICIES: dict[str, type[RecipientSelectionPolicy]] = {
    LeastLoadedPolicy.name: LeastLoadedPolicy,
    UniformRandomPolicy.name: UniformRandomPolicy,
}


def get_selection_policy(name: str) -> RecipientSelectionPolicy:
    """Build the policy registered under name.

    Raises:
        ValueError: If no policy has that name.
    """
    try:
        return _POLICIES[name]()
    except KeyError:
        raise ValueError(f"Unknown recipient selection policy: {name}") from None
