"""
Pipeline stage registry for job applications.

Defines the closed set of hiring stages and the transition policy.

The forward order (applied → screening → interview → assessment → offer →
hired) drives progress display only. Any non-terminal stage may move to any
other stage, backwards included. Terminal stages (hired, rejected) are
absorbing: nothing moves out of them.
"""

from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional


class Stage(str, Enum):
    """Hiring pipeline stages."""

    APPLIED = "applied"
    SCREENING = "screening"
    INTERVIEW = "interview"
    ASSESSMENT = "assessment"
    OFFER = "offer"
    HIRED = "hired"
    REJECTED = "rejected"


# Progress order; rejected is a side branch reachable from any open stage
ORDERED_STAGES = (
    Stage.APPLIED,
    Stage.SCREENING,
    Stage.INTERVIEW,
    Stage.ASSESSMENT,
    Stage.OFFER,
    Stage.HIRED,
    Stage.REJECTED,
)

INITIAL_STAGE = Stage.APPLIED

TERMINAL_STAGES: FrozenSet[Stage] = frozenset({Stage.HIRED, Stage.REJECTED})

STAGE_VALUES: FrozenSet[str] = frozenset(stage.value for stage in Stage)


def is_valid_stage(name: Optional[str]) -> bool:
    """Return True if name is a registered stage value."""
    return name in STAGE_VALUES


def parse_stage(name: str) -> Stage:
    """
    Convert a stage name to a Stage.

    Raises:
        ValueError: If the name is not a registered stage
    """
    if isinstance(name, Stage):
        return name
    if not is_valid_stage(name):
        raise ValueError(f"Unknown pipeline stage: {name!r}")
    return Stage(name)


def is_terminal(stage: str) -> bool:
    """Return True for stages that admit no further transitions."""
    return parse_stage(stage) in TERMINAL_STAGES


def allowed_targets(current: str) -> FrozenSet[Stage]:
    """
    Stages an application in `current` may move to.

    Args:
        current: The application's current stage

    Returns:
        Every stage except the current one, or an empty set when the
        current stage is terminal
    """
    stage = parse_stage(current)
    if stage in TERMINAL_STAGES:
        return frozenset()
    return frozenset(s for s in Stage if s is not stage)


def can_transition(current: str, target: str) -> bool:
    """Return True if moving from current to target is legal."""
    if not is_valid_stage(target):
        return False
    return parse_stage(target) in allowed_targets(current)


def empty_counts() -> Dict[str, int]:
    """A zero count for every stage, in progress order."""
    return {stage.value: 0 for stage in ORDERED_STAGES}


def replay_stages(events: Iterable) -> Stage:
    """
    Rebuild the current stage from an ordered stage-change history.

    Each event needs `from_stage` and `to_stage` attributes. Events whose
    `kind` is "note" are annotations and are skipped.

    Raises:
        ValueError: If an event does not start from the stage reached so far
    """
    stage = INITIAL_STAGE
    for event in events:
        if getattr(event, "kind", "stage_change") != "stage_change":
            continue
        if parse_stage(event.from_stage) is not stage:
            raise ValueError(
                f"History gap: event starts at {event.from_stage!r} "
                f"but replay reached {stage.value!r}"
            )
        stage = parse_stage(event.to_stage)
    return stage
