"""
Tests for the Pillow/numpy render layer.
"""

import pytest
from unittest.mock import Mock
from PIL import Image

from ticker.config import TickerConfig
from ticker.geometry import Layout
from ticker.messages import MessageSequence, PlainMessage
from ticker.render.image_layer import ImageRenderLayer


@pytest.fixture
def layer():
    return ImageRenderLayer(width=64, height=16)


def filled_columns(frame: Image.Image) -> int:
    """Number of columns that contain a lit pixel."""
    pixels = frame.load()
    return sum(
        1 for x in range(frame.width)
        if any(pixels[x, y] != (0, 0, 0) for y in range(frame.height))
    )


class TestMeasure:
    def test_empty_layer(self, layer):
        assert layer.measure_total_extent() == 0
        assert layer.compose() is None

    def test_spans_laid_out_in_order(self, layer):
        first = layer.create_message_span("HELLO")
        sep = layer.create_separator_span(" ")
        second = layer.create_message_span("WORLD")

        assert first.offset == 0
        assert sep.offset == first.width
        assert second.offset == first.width + sep.width
        assert layer.measure_total_extent() == first.width + sep.width + second.width

    def test_longer_text_is_wider(self, layer):
        short = layer.create_message_span("AB")
        long = layer.create_message_span("ABABABAB")
        assert long.width > short.width

    def test_empty_text_has_no_image(self, layer):
        span = layer.create_separator_span("")
        assert span.image is None
        assert span.width == 0

    def test_clear(self, layer):
        layer.create_message_span("X")
        layer.clear()
        assert layer.spans == []
        assert layer.measure_total_extent() == 0

    def test_label_uses_style_colour(self):
        layer = ImageRenderLayer(width=32, height=16, styles={'up': (0, 255, 0)})
        span = layer.create_label_span("UP", 'up')
        colours = {colour for _, colour in span.image.getcolors(maxcolors=4096)}
        assert any(g > 0 and r == 0 for r, g, b in colours)


class TestFrames:
    def test_frame_has_viewport_size(self, layer):
        layer.create_message_span("HELLO")
        frame = layer.get_visible_portion()
        assert frame.size == (64, 16)

    def test_strip_outside_viewport_is_blank(self, layer):
        layer.create_message_span("HELLO")
        layer.set_position(64)
        assert filled_columns(layer.get_visible_portion()) == 0

        layer.set_position(-layer.measure_total_extent())
        assert filled_columns(layer.get_visible_portion()) == 0

    def test_strip_inside_viewport_is_drawn(self, layer):
        layer.create_message_span("HELLO")
        layer.set_position(0)
        assert filled_columns(layer.get_visible_portion()) > 0

    def test_vertical_strip_is_rotated(self, layer):
        layer.create_message_span("HELLO")
        horizontal = layer.compose()

        layer.set_orientation('up', -90)
        vertical = layer.compose()
        assert vertical.size == (horizontal.height, horizontal.width)

        # Extent along the scroll axis is unchanged by rotation
        assert layer.measure_total_extent() == horizontal.width

    def test_resize(self, layer):
        layer.create_message_span("HELLO")
        layer.resize(20, 8)
        assert layer.get_viewport_size() == (20, 8)
        assert layer.get_visible_portion().size == (20, 8)


class TestClicks:
    def test_click_hits_message_under_point(self, layer):
        hook = Mock()
        span = layer.create_message_span("HELLO", on_click=hook)
        layer.set_position(0)

        assert layer.click(1, 5, event='evt') is True
        hook.assert_called_once_with('evt', span)

    def test_click_outside_strip(self, layer):
        hook = Mock()
        layer.create_message_span("HI", on_click=hook)
        layer.set_position(0)
        assert layer.click(63, 5) is False
        hook.assert_not_called()

    def test_click_on_separator_ignored(self, layer):
        message = layer.create_message_span("HELLO", on_click=Mock())
        layer.create_separator_span("    ")
        layer.set_position(0)
        assert layer.click(message.width + 1, 5) is False

    def test_vertical_hit_test(self, layer):
        layer.set_orientation('down', 90)
        first = layer.create_message_span("AAAA")
        layer.set_position(0)
        assert layer.span_at(0, 1) is first


class TestWithLayout:
    """Layout drives the image layer like any render layer."""

    def test_layout_click_reaches_record(self):
        layer = ImageRenderLayer(width=64, height=16)
        on_click = Mock()
        layout = Layout(layer, TickerConfig(auto_start=False), on_click=on_click)
        record = {'id': 42}

        extent = layout.render(MessageSequence.flat([PlainMessage("NEWS", record)]))
        assert extent == layer.measure_total_extent()

        layer.set_position(0)
        assert layer.click(1, 5, event='evt') is True
        on_click.assert_called_once_with('evt', layer.spans[0], record)
