"""
Image Render Layer

Renders ticker spans to Pillow images and produces viewport frames from them.

Features:
- Each span is drawn once, when it is created
- The spans are composed into one strip image, cached as a numpy array
- Fast numpy slicing to cut the visible frame out of the strip
- Vertical tickers rotate the strip by the configured text rotation
- Hit testing so a click on the frame reaches the message under it
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from ticker.config import VERTICAL_DIRECTIONS
from ticker.render.base import RenderLayer, SpanClickHook

Color = Tuple[int, int, int]


@dataclass
class Span:
    """One drawn piece of the strip."""
    kind: str  # 'message', 'label' or 'separator'
    text: str
    image: Optional[Image.Image]
    offset: int = 0
    style_class: str = ''
    on_click: Optional[SpanClickHook] = None

    @property
    def width(self) -> int:
        return self.image.width if self.image is not None else 0


class ImageRenderLayer(RenderLayer):
    """
    Pillow/numpy implementation of the render layer.

    Spans are laid out left to right along the strip. Positions are the
    coordinate of the strip's leading edge inside the viewport: its left
    edge for horizontal tickers, its top edge for vertical ones.
    """

    def __init__(self, width: int, height: int,
                 font: Optional[ImageFont.ImageFont] = None,
                 text_color: Color = (255, 255, 255),
                 background: Color = (0, 0, 0),
                 styles: Optional[Dict[str, Color]] = None,
                 padding: int = 1,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the render layer.

        Args:
            width: Viewport width in pixels
            height: Viewport height in pixels
            font: Font used for every span (Pillow default font if None)
            text_color: Colour of message and separator text
            background: Frame background colour
            styles: Label style class -> text colour
            padding: Pixels above and below the text line
            logger: Optional logger instance
        """
        self.width = width
        self.height = height
        self.font = font or ImageFont.load_default()
        self.text_color = text_color
        self.background = background
        self.styles = dict(styles or {})
        self.logger = logger or logging.getLogger(__name__)

        self._scratch = ImageDraw.Draw(Image.new('RGB', (1, 1)))
        bbox = self.font.getbbox("Ag")
        self.line_height = int(bbox[3]) + 2 * padding
        self.padding = padding

        self.spans: List[Span] = []
        self.position = 0.0
        self.direction = 'left'
        self.rotation = -90

        self._strip_array: Optional[np.ndarray] = None
        self._frame_buffer: Optional[np.ndarray] = None

    # -- span creation -------------------------------------------------

    def clear(self) -> None:
        self.spans = []
        self._strip_array = None

    def create_message_span(self, text: str, on_click: Optional[SpanClickHook] = None) -> Span:
        return self._append(Span('message', text, self._draw_text(text, self.text_color),
                                 on_click=on_click))

    def create_label_span(self, text: str, style_class: str) -> Span:
        color = self.styles.get(style_class, self.text_color)
        return self._append(Span('label', text, self._draw_text(text, color), style_class=style_class))

    def create_separator_span(self, text: str) -> Span:
        return self._append(Span('separator', text, self._draw_text(text, self.text_color)))

    def _append(self, span: Span) -> Span:
        span.offset = self.strip_length
        self.spans.append(span)
        self._strip_array = None
        return span

    def _draw_text(self, text: str, color: Color) -> Optional[Image.Image]:
        width = int(math.ceil(self._scratch.textlength(text, font=self.font)))
        if width <= 0:
            return None
        image = Image.new('RGB', (width, self.line_height), self.background)
        ImageDraw.Draw(image).text((0, self.padding), text, font=self.font, fill=color)
        return image

    # -- geometry ------------------------------------------------------

    @property
    def strip_length(self) -> int:
        return sum(span.width for span in self.spans)

    @property
    def is_vertical(self) -> bool:
        return self.direction in VERTICAL_DIRECTIONS

    def measure_total_extent(self) -> float:
        # Rotation turns the strip's length into its height, so the extent
        # along the scroll axis is the strip length on both axes
        return float(self.strip_length)

    def set_position(self, value: float) -> None:
        self.position = value

    def get_position(self) -> float:
        return self.position

    def get_viewport_size(self) -> Tuple[float, float]:
        return self.width, self.height

    def resize(self, width: float, height: float) -> None:
        self.width = int(width)
        self.height = int(height)
        self._frame_buffer = None

    def set_orientation(self, direction: str, rotation: int) -> None:
        self.direction = direction
        self.rotation = rotation
        self._strip_array = None

    # -- frames --------------------------------------------------------

    def compose(self) -> Optional[Image.Image]:
        """Compose all spans into one strip image, rotated for vertical tickers."""
        length = self.strip_length
        if length <= 0:
            return None
        strip = Image.new('RGB', (length, self.line_height), self.background)
        for span in self.spans:
            if span.image is not None:
                strip.paste(span.image, (span.offset, 0))
        if self.is_vertical:
            # CSS-style degrees are clockwise, Pillow's are counter-clockwise
            strip = strip.rotate(-self.rotation, expand=True)
        return strip

    def get_visible_portion(self) -> Image.Image:
        """
        Get the current viewport frame using numpy slicing.

        Returns:
            PIL Image of viewport size
        """
        if self._frame_buffer is None or self._frame_buffer.shape != (self.height, self.width, 3):
            self._frame_buffer = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        self._frame_buffer[:, :] = self.background

        if self._strip_array is None:
            strip = self.compose()
            self._strip_array = np.array(strip) if strip is not None else None

        if self._strip_array is not None and self.width > 0 and self.height > 0:
            offset = int(self.position)
            if self.is_vertical:
                self._blit_rows(self._strip_array, offset)
            else:
                self._blit_columns(self._strip_array, offset)

        return Image.fromarray(self._frame_buffer)

    def _blit_columns(self, strip: np.ndarray, offset: int) -> None:
        start = max(0, offset)
        end = min(self.width, offset + strip.shape[1])
        if start >= end:
            return
        rows = min(self.height, strip.shape[0])
        self._frame_buffer[:rows, start:end] = strip[:rows, start - offset:end - offset]

    def _blit_rows(self, strip: np.ndarray, offset: int) -> None:
        start = max(0, offset)
        end = min(self.height, offset + strip.shape[0])
        if start >= end:
            return
        cols = min(self.width, strip.shape[1])
        self._frame_buffer[start:end, :cols] = strip[start - offset:end - offset, :cols]

    # -- interaction ---------------------------------------------------

    def span_at(self, x: float, y: float) -> Optional[Span]:
        """Span under a viewport point, if any."""
        if self.is_vertical:
            along = y - self.position
            if self.rotation == 90:
                # Clockwise rotation puts the first span at the top
                strip_offset = along
            else:
                strip_offset = self.strip_length - along
        else:
            strip_offset = x - self.position

        for span in self.spans:
            if span.offset <= strip_offset < span.offset + span.width:
                return span
        return None

    def click(self, x: float, y: float, event: Any = None) -> bool:
        """
        Dispatch a click at a viewport point to the message under it.

        Returns:
            True if a clickable message was hit
        """
        span = self.span_at(x, y)
        if span is None or span.on_click is None:
            return False
        self.logger.debug("Click on message %r", span.text)
        span.on_click(event, span)
        return True
