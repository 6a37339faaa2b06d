from __future__ import annotations

from collections.abc import Iterable

from lost_loot.core.rules import DEFAULT_RULES, RuleTable
from lost_loot.schemas.team_state import TeamState


def next_unlocked(
    completed_id: int,
    current_unlocked: Iterable[int],
    completed: Iterable[int],
    *,
    rules: RuleTable = DEFAULT_RULES,
) -> frozenset[int]:
    """Unlocked set after ``completed_id`` is finished.

    ``completed`` is the completed set including ``completed_id``. Unknown
    checkpoint IDs contribute no successors.
    """
    unlocked = set(current_unlocked) | rules.successors(completed_id)
    unlocked.difference_update(completed)
    unlocked.discard(completed_id)
    return frozenset(unlocked)


def awards_key(completed_id: int, *, rules: RuleTable = DEFAULT_RULES) -> bool:
    return completed_id in rules.key_checkpoints


def can_end(state: TeamState, *, rules: RuleTable = DEFAULT_RULES) -> bool:
    # Aggregate thresholds only; completing the final checkpoint is not required.
    return (
        len(state.completed_checkpoints) >= rules.required_checkpoints
        and len(state.keys_collected) >= rules.required_keys
    )
