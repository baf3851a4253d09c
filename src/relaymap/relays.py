"""Relay role classification, dot placement and country aggregation."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

from .geometry import project
from .models import RelayRecord, flags_contain

GUARD_FLAG = "Guard"
EXIT_FLAG = "Exit"

RADIUS_NOTABLE = 4.0
RADIUS_MIDDLE = 3.0


class RelayRole(str, Enum):
    MIDDLE = "Middle"
    GUARD = "Guard"
    EXIT = "Exit"

    @property
    def notable(self) -> bool:
        return self is not RelayRole.MIDDLE


@dataclass(frozen=True, slots=True)
class DotStyle:
    role: RelayRole
    color: str
    radius: float


ROLE_STYLES: dict[RelayRole, DotStyle] = {
    RelayRole.MIDDLE: DotStyle(RelayRole.MIDDLE, "#fde047", RADIUS_MIDDLE),
    RelayRole.GUARD: DotStyle(RelayRole.GUARD, "#c084fc", RADIUS_NOTABLE),
    RelayRole.EXIT: DotStyle(RelayRole.EXIT, "#f87171", RADIUS_NOTABLE),
}


@dataclass(frozen=True, slots=True)
class DotPlacement:
    x: float
    y: float
    style: DotStyle


@dataclass(frozen=True, slots=True)
class LegendCounts:
    """Summary-line counters.

    Guards and exits are counted independently, so a relay carrying both
    flags adds to both while being drawn once as a guard. `middles` is the
    remainder of the total after guards and exits, floored at zero, so the
    double count also shrinks it.
    """

    total: int
    guards: int
    exits: int
    middles: int


def classify(flags: Iterable[str]) -> DotStyle:
    """Return the drawing style for a flag set. Guard wins over Exit."""
    flag_list = list(flags)
    if flags_contain(flag_list, GUARD_FLAG):
        return ROLE_STYLES[RelayRole.GUARD]
    if flags_contain(flag_list, EXIT_FLAG):
        return ROLE_STYLES[RelayRole.EXIT]
    return ROLE_STYLES[RelayRole.MIDDLE]


def plan_dots(
    relays: Sequence[RelayRecord],
) -> tuple[tuple[DotPlacement, ...], tuple[DotPlacement, ...]]:
    """Split positioned relays into the middle pass and the guard/exit pass.

    Input order is kept within each pass. Relays without a position are
    skipped here but still count in `legend_counts`.
    """
    middle_pass: list[DotPlacement] = []
    notable_pass: list[DotPlacement] = []
    for relay in relays:
        position = relay.position
        if position is None:
            continue
        style = classify(relay.flags)
        x, y = project(position[0], position[1])
        placement = DotPlacement(x=x, y=y, style=style)
        if style.role.notable:
            notable_pass.append(placement)
        else:
            middle_pass.append(placement)
    return tuple(middle_pass), tuple(notable_pass)


def legend_counts(relays: Sequence[RelayRecord]) -> LegendCounts:
    total = len(relays)
    guards = sum(1 for relay in relays if relay.has_flag(GUARD_FLAG))
    exits = sum(1 for relay in relays if relay.has_flag(EXIT_FLAG))
    middles = max(total - guards - exits, 0)
    return LegendCounts(total=total, guards=guards, exits=exits, middles=middles)


def tally_countries(relays: Iterable[RelayRecord]) -> list[tuple[str, int]]:
    """Rank country codes by relay count, ties broken alphabetically."""
    counts: Counter[str] = Counter()
    for relay in relays:
        if relay.country is None:
            continue
        counts[relay.country.upper()] += 1
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))
