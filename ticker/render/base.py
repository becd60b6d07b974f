"""
Render layer interface.

The ticker core never draws anything itself. A render layer owns the
visual strip of spans, knows how long it is along the scroll axis and
where it is positioned inside the viewport.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Tuple

# (event, element_handle) -> None, installed on clickable message spans
SpanClickHook = Callable[[Any, Any], None]


class RenderLayer(ABC):
    """Abstract render layer consumed by the ticker controller."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every span."""

    @abstractmethod
    def create_message_span(self, text: str, on_click: Optional[SpanClickHook] = None) -> Any:
        """Append a message span and return its handle."""

    @abstractmethod
    def create_label_span(self, text: str, style_class: str) -> Any:
        """Append a category label span and return its handle."""

    @abstractmethod
    def create_separator_span(self, text: str) -> Any:
        """Append a separator span and return its handle."""

    @abstractmethod
    def measure_total_extent(self) -> float:
        """Length of the rendered strip along the scroll axis."""

    @abstractmethod
    def set_position(self, value: float) -> None:
        """Place the strip at ``value`` along the scroll axis."""

    @abstractmethod
    def get_position(self) -> float:
        """Current strip coordinate along the scroll axis."""

    @abstractmethod
    def get_viewport_size(self) -> Tuple[float, float]:
        """(width, height) of the visible area."""

    def set_orientation(self, direction: str, rotation: int) -> None:
        """
        Called when the scroll axis or text rotation changes.

        Layers that draw vertical text override this; the default ignores it.
        """

    def resize(self, width: float, height: float) -> None:
        """
        Called when the host viewport changes size.

        Layers that draw their own frames override this; the default ignores it.
        """
