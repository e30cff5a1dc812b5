"""
SONAR - Sensor-Oriented Navigation And Radar
Angle Easer Module

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Moves the displayed heading toward the filtered target heading by a
bounded step on every animation tick.  Far away from the target the dial
catches up quickly; close to it the dial crawls one degree at a time so
it settles without oscillating.
"""

from dataclasses import dataclass, replace

from circular_math import normalize, signed_diff

# Step size while far from the target
FAST_ROTATE_JUMP = 4
# Step size while close to the target
ROTATE_JUMP = 1
# Distance at which the easer switches from fast to fine steps
DIFFERENCE = 15


@dataclass(frozen=True)
class AngleState:
    """Displayed (``current``) and desired (``target``) heading in degrees."""

    current: int = 0
    target: int = 0

    def __post_init__(self):
        object.__setattr__(self, "current", normalize(self.current))
        object.__setattr__(self, "target", normalize(self.target))

    @property
    def settled(self) -> bool:
        return self.current == self.target


def with_target(state: AngleState, target: int) -> AngleState:
    """Return a copy of *state* aiming at *target*."""
    return replace(state, target=target)


def with_current(state: AngleState, current: int) -> AngleState:
    """Return a copy of *state* with the displayed heading moved to *current*."""
    return replace(state, current=current)


def step_size(diff: int) -> int:
    """Step magnitude for a remaining signed distance *diff*."""
    return ROTATE_JUMP if abs(diff) < DIFFERENCE else FAST_ROTATE_JUMP


class AngleEaser:
    """Stateless easing policy; every call returns a new :class:`AngleState`."""

    @staticmethod
    def tick(state: AngleState) -> AngleState:
        """Advance ``state.current`` one step toward ``state.target``.

        Returns *state* itself when it is already settled.  The step never
        carries the heading past the target: the 4° step only applies while
        at least 15° remain.
        """
        if state.settled:
            return state
        diff = signed_diff(state.current, state.target)
        step = step_size(diff)
        if diff < 0:
            step = -step
        return replace(state, current=normalize(state.current + step))
