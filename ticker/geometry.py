"""
Layout and Geometry

Turns a MessageSequence into spans on the render layer and reports the
scalar measurements the scroll engine works with: the total extent of the
rendered strip along the scroll axis and the visible extent of the viewport.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from ticker.config import TickerConfig, VERTICAL_DIRECTIONS
from ticker.messages import MessageSequence, PlainMessage
from ticker.render.base import RenderLayer

logger = logging.getLogger(__name__)

# (event, element_handle, record) -> None
ClickCallback = Callable[[Any, Any, Any], None]


@dataclass(frozen=True)
class Viewport:
    """Size of the host container, in pixels."""
    width: float = 0
    height: float = 0

    def extent(self, direction: str) -> float:
        """Visible extent along the scroll axis of ``direction``."""
        return self.height if direction in VERTICAL_DIRECTIONS else self.width


class Layout:
    """
    Renders message sequences as spans and measures them.

    Spans are created in display order: for grouped content each group emits
    its label, the category separator, then each message followed by the
    message separator; flat content emits messages and separators only.
    """

    def __init__(self, render_layer: RenderLayer, config: TickerConfig,
                 on_click: Optional[ClickCallback] = None):
        self.render_layer = render_layer
        self.config = config
        self.on_click = on_click
        self.total_extent: float = 0.0
        self.handles: List[Any] = []

    def render(self, sequence: Optional[MessageSequence]) -> float:
        """
        Replace the rendered content with ``sequence`` and measure it.

        Args:
            sequence: Content to render, None clears the strip

        Returns:
            Total extent of the rendered strip along the scroll axis
        """
        self.render_layer.clear()
        self.handles = []

        if sequence is None or sequence.is_empty:
            self.total_extent = 0.0
            return self.total_extent

        if sequence.categorized:
            for group in sequence.groups:
                style = self.config.get_tag_style(group.name)
                self.handles.append(self.render_layer.create_label_span(group.name, style))
                if self.config.category_separator:
                    self.handles.append(
                        self.render_layer.create_separator_span(self.config.category_separator))
                for message in group.messages:
                    self._render_message(message)
        else:
            for message in sequence.messages:
                self._render_message(message)

        return self.measure()

    def measure(self) -> float:
        """Re-measure what is currently rendered."""
        self.total_extent = float(self.render_layer.measure_total_extent())
        logger.debug("Measured ticker content: %d spans, extent %.0fpx",
                     len(self.handles), self.total_extent)
        return self.total_extent

    def clear(self) -> None:
        self.render_layer.clear()
        self.handles = []
        self.total_extent = 0.0

    def viewport(self) -> Viewport:
        width, height = self.render_layer.get_viewport_size()
        return Viewport(width, height)

    def _render_message(self, message: PlainMessage) -> None:
        click = self._click_hook(message.record) if self.on_click else None
        self.handles.append(self.render_layer.create_message_span(message.text, click))
        if self.config.message_separator:
            self.handles.append(
                self.render_layer.create_separator_span(self.config.message_separator))

    def _click_hook(self, record: Any) -> Callable[[Any, Any], None]:
        def hook(event: Any, handle: Any) -> None:
            self.on_click(event, handle, record)
        return hook
