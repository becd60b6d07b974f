"""
Scroll Engine

Advances the ticker strip by a fixed number of pixels per tick and detects
the end of a pass.

Every (axis, direction, rotation) combination is one row of WRAP_TABLE:
which way the position moves, the coordinate at which the pass is over and
the coordinate the strip re-enters from. Rotation only matters on the
vertical axis, where rotated text enters from a different edge.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from ticker.config import DIRECTIONS, HORIZONTAL_DIRECTIONS, ROTATIONS
from ticker.exceptions import ConfigError
from ticker.geometry import Viewport


class Axis(Enum):
    """Scroll axis, resolved once per direction change."""
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @classmethod
    def of(cls, direction: str) -> 'Axis':
        return cls.HORIZONTAL if direction in HORIZONTAL_DIRECTIONS else cls.VERTICAL


# (total_extent, viewport) -> coordinate
Edge = Callable[[float, Viewport], float]


@dataclass(frozen=True)
class WrapRule:
    """One row of the wrap table."""
    step: int  # -1 moves towards smaller coordinates, +1 towards larger
    threshold: Edge
    reset: Edge

    def is_past(self, position: float, total: float, viewport: Viewport) -> bool:
        limit = self.threshold(total, viewport)
        return position <= limit if self.step < 0 else position >= limit

    def pass_length(self, total: float, viewport: Viewport) -> float:
        """Distance travelled between a reset and the following wrap."""
        return abs(self.threshold(total, viewport) - self.reset(total, viewport))


RuleKey = Tuple[Axis, str, Optional[int]]

WRAP_TABLE: Dict[RuleKey, WrapRule] = {
    (Axis.HORIZONTAL, 'left', None): WrapRule(
        step=-1,
        threshold=lambda total, vp: -total,
        reset=lambda total, vp: vp.width,
    ),
    (Axis.HORIZONTAL, 'right', None): WrapRule(
        step=1,
        threshold=lambda total, vp: vp.width,
        reset=lambda total, vp: -total,
    ),
    (Axis.VERTICAL, 'up', -90): WrapRule(
        step=-1,
        threshold=lambda total, vp: 0,
        reset=lambda total, vp: total + vp.height,
    ),
    (Axis.VERTICAL, 'up', 90): WrapRule(
        step=-1,
        threshold=lambda total, vp: -total,
        reset=lambda total, vp: vp.height,
    ),
    (Axis.VERTICAL, 'down', -90): WrapRule(
        step=1,
        threshold=lambda total, vp: total + vp.height,
        reset=lambda total, vp: 0,
    ),
    (Axis.VERTICAL, 'down', 90): WrapRule(
        step=1,
        threshold=lambda total, vp: vp.height,
        reset=lambda total, vp: -(total + vp.height),
    ),
}


def rule_key(direction: str, rotation: int) -> RuleKey:
    axis = Axis.of(direction)
    return (axis, direction, rotation if axis is Axis.VERTICAL else None)


def resolve_rule(direction: str, rotation: int) -> WrapRule:
    """Look up the wrap rule for a direction/rotation pair."""
    if direction not in DIRECTIONS:
        raise ConfigError("Unknown scroll direction", field='direction', value=direction)
    if rotation not in ROTATIONS:
        raise ConfigError("Text rotation must be -90 or 90", field='text_rotation', value=rotation)
    return WRAP_TABLE[rule_key(direction, rotation)]


class ScrollEngine:
    """
    Fixed-step scroller for one ticker strip.

    The edge check runs before the step: a tick that finds the strip at or
    past the wrap threshold resets it to the start coordinate and reports a
    wrap, any other tick moves it by ``speed``.
    """

    def __init__(self, direction: str = 'left', rotation: int = -90,
                 speed: float = 2.0, logger: Optional[logging.Logger] = None):
        """
        Initialize the ScrollEngine.

        Args:
            direction: One of left, right, up, down
            rotation: Text rotation for vertical scrolling, -90 or 90
            speed: Pixels to advance per tick
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self._rule = resolve_rule(direction, rotation)
        self.direction = direction
        self.rotation = rotation
        self.axis = Axis.of(direction)
        self.speed = float(speed)

        self.position = 0.0
        self.total_extent = 0.0
        self.viewport = Viewport()

        self.ticks = 0
        self.passes = 0

    @property
    def rule(self) -> WrapRule:
        return self._rule

    @property
    def has_content(self) -> bool:
        return self.total_extent > 0

    def set_direction(self, direction: str) -> bool:
        """
        Change direction within the current axis.

        Returns:
            False (and leaves the direction alone) if ``direction`` is on the
            other axis, True otherwise
        """
        if direction not in DIRECTIONS:
            raise ConfigError("Unknown scroll direction", field='direction', value=direction)
        if Axis.of(direction) is not self.axis:
            self.logger.debug("Ignoring cross-axis direction change %s -> %s",
                              self.direction, direction)
            return False
        self._rule = resolve_rule(direction, self.rotation)
        self.direction = direction
        return True

    def set_rotation(self, rotation: int) -> None:
        self._rule = resolve_rule(self.direction, rotation)
        self.rotation = rotation

    def reinitialize(self, direction: str, rotation: Optional[int] = None) -> None:
        """Switch to any direction, including the other axis, and reset."""
        rotation = self.rotation if rotation is None else rotation
        self._rule = resolve_rule(direction, rotation)
        self.direction = direction
        self.rotation = rotation
        self.axis = Axis.of(direction)
        self.reset_position()

    def set_speed(self, speed: float) -> None:
        self.speed = float(speed)

    def set_extent(self, total_extent: float) -> None:
        self.total_extent = max(0.0, float(total_extent))

    def set_viewport(self, viewport: Viewport) -> None:
        self.viewport = viewport

    def start_position(self) -> float:
        """Coordinate a new pass starts from."""
        return float(self._rule.reset(self.total_extent, self.viewport))

    def reset_position(self) -> float:
        self.position = self.start_position()
        return self.position

    def pass_length(self) -> float:
        return self._rule.pass_length(self.total_extent, self.viewport)

    def tick(self) -> bool:
        """
        Advance one step.

        Returns:
            True if this tick completed a pass and reset the position
        """
        if not self.has_content:
            return False

        self.ticks += 1
        if self._rule.is_past(self.position, self.total_extent, self.viewport):
            self.position = self.start_position()
            self.passes += 1
            self.logger.debug(
                "Scroll wrap-around: direction=%s rotation=%s, reset to %.0f (pass %d)",
                self.direction, self.rotation, self.position, self.passes
            )
            return True

        self.position += self._rule.step * self.speed
        return False

    def get_scroll_info(self) -> Dict[str, Any]:
        """
        Get current scroll state information.

        Returns:
            Dictionary with scroll state information
        """
        return {
            'position': self.position,
            'direction': self.direction,
            'axis': self.axis.value,
            'rotation': self.rotation,
            'speed': self.speed,
            'total_extent': self.total_extent,
            'viewport': (self.viewport.width, self.viewport.height),
            'pass_length': self.pass_length(),
            'ticks': self.ticks,
            'passes': self.passes,
        }
