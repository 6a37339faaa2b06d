from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True, slots=True)
class RuleTable:
    unlock_map: Mapping[int, frozenset[int]]
    key_checkpoints: frozenset[int]
    required_checkpoints: int
    required_keys: int
    initial_checkpoint: int = 1
    # Designated last checkpoint of the route. End-game eligibility does not
    # consult it; only the aggregate thresholds above are checked.
    final_checkpoint: int | None = None
    max_checkpoint_id: int = 0

    def successors(self, checkpoint_id: int) -> frozenset[int]:
        return self.unlock_map.get(checkpoint_id, frozenset())


def build_rule_table(
    *,
    unlock_map: Mapping[int, set[int] | frozenset[int] | list[int]],
    key_checkpoints: set[int] | frozenset[int] | list[int],
    required_checkpoints: int,
    required_keys: int,
    initial_checkpoint: int = 1,
    final_checkpoint: int | None = None,
) -> RuleTable:
    frozen_map = {source: frozenset(targets) for source, targets in unlock_map.items()}
    all_ids = {initial_checkpoint, *frozen_map}
    for targets in frozen_map.values():
        all_ids.update(targets)
    if final_checkpoint is not None:
        all_ids.add(final_checkpoint)

    return RuleTable(
        unlock_map=MappingProxyType(frozen_map),
        key_checkpoints=frozenset(key_checkpoints),
        required_checkpoints=required_checkpoints,
        required_keys=required_keys,
        initial_checkpoint=initial_checkpoint,
        final_checkpoint=final_checkpoint,
        max_checkpoint_id=max(all_ids),
    )


DEFAULT_RULES = build_rule_table(
    unlock_map={
        1: {2, 3},
        2: {4},
        3: {4},
        4: {5, 6},
        5: {7},
        6: {7},
        7: {8},
    },
    key_checkpoints={1, 4, 7},
    required_checkpoints=7,
    required_keys=3,
    initial_checkpoint=1,
    final_checkpoint=8,
)

TEAM_ID_PATTERN = r"^[A-Za-z0-9-]{3,50}$"
