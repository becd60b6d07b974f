"""
Pytest configuration and fixtures for ticker tests.

Provides a fake render layer, a hand-driven scheduler and fake data
sources so tests control every tick, timer and data-ready event.
"""

import pytest
import sys
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

# Add project root to path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from ticker.config import TickerConfig
from ticker.render.base import RenderLayer
from ticker.sources import DataSource


class FakeSpan:
    """Span handle recorded by FakeRenderLayer."""

    def __init__(self, kind: str, text: str, style_class: str = '', on_click=None):
        self.kind = kind
        self.text = text
        self.style_class = style_class
        self.on_click = on_click

    def __repr__(self) -> str:
        return f"FakeSpan({self.kind!r}, {self.text!r})"


class FakeRenderLayer(RenderLayer):
    """Render layer measuring every character as ``char_width`` pixels."""

    def __init__(self, width: int = 100, height: int = 40, char_width: int = 10):
        self.width = width
        self.height = height
        self.char_width = char_width
        self.spans: List[FakeSpan] = []
        self.position = 0.0
        self.orientation: Tuple[str, int] = ('left', -90)
        self.clear_count = 0

    def clear(self) -> None:
        self.spans = []
        self.clear_count += 1

    def create_message_span(self, text, on_click=None):
        span = FakeSpan('message', text, on_click=on_click)
        self.spans.append(span)
        return span

    def create_label_span(self, text, style_class):
        span = FakeSpan('label', text, style_class=style_class)
        self.spans.append(span)
        return span

    def create_separator_span(self, text):
        span = FakeSpan('separator', text)
        self.spans.append(span)
        return span

    def measure_total_extent(self) -> float:
        return float(sum(len(span.text) for span in self.spans) * self.char_width)

    def set_position(self, value: float) -> None:
        self.position = value

    def get_position(self) -> float:
        return self.position

    def get_viewport_size(self):
        return self.width, self.height

    def set_orientation(self, direction: str, rotation: int) -> None:
        self.orientation = (direction, rotation)

    def resize(self, width, height) -> None:
        self.width = width
        self.height = height

    def texts(self, kind: Optional[str] = None) -> List[str]:
        return [span.text for span in self.spans if kind is None or span.kind == kind]


class ManualPeriodicTask:
    """Periodic task that only runs when the test fires it."""

    def __init__(self, callback: Callable[[], Any], interval_ms: float, name: str = ''):
        self.callback = callback
        self.interval_ms = interval_ms
        self.name = name
        self.is_running = False
        self.start_count = 0
        self.join_count = 0
        # Runs inside join(), where another thread could act on the ticker
        self.on_join: Optional[Callable[[], Any]] = None

    def start(self) -> None:
        if not self.is_running:
            self.start_count += 1
        self.is_running = True

    def stop(self, wait: bool = True) -> None:
        self.is_running = False
        if wait:
            self.join()

    def join(self) -> None:
        self.join_count += 1
        hook, self.on_join = self.on_join, None
        if hook:
            hook()

    def set_interval(self, interval_ms: float) -> None:
        self.interval_ms = interval_ms

    def fire(self, times: int = 1) -> List[Any]:
        results = []
        for _ in range(times):
            if not self.is_running:
                break
            results.append(self.callback())
        return results


class ManualDelayedTask:
    """Restartable one-shot timer fired by the test."""

    def __init__(self, callback: Callable[[], Any], name: str = ''):
        self.callback = callback
        self.name = name
        self.delay_ms: Optional[float] = None
        self.schedule_count = 0

    @property
    def is_pending(self) -> bool:
        return self.delay_ms is not None

    def delay(self, delay_ms: float) -> None:
        self.delay_ms = delay_ms
        self.schedule_count += 1

    def cancel(self) -> None:
        self.delay_ms = None

    def fire(self) -> None:
        assert self.is_pending, "timer is not armed"
        self.delay_ms = None
        self.callback()


class ManualScheduler:
    """Scheduler handing out hand-driven timers."""

    def __init__(self):
        self.periodic_tasks: List[ManualPeriodicTask] = []
        self.delayed_tasks: List[ManualDelayedTask] = []

    def periodic(self, callback, interval_ms, name=''):
        task = ManualPeriodicTask(callback, interval_ms, name)
        self.periodic_tasks.append(task)
        return task

    def delayed(self, callback, name=''):
        task = ManualDelayedTask(callback, name)
        self.delayed_tasks.append(task)
        return task

    @property
    def tick_task(self) -> ManualPeriodicTask:
        return self.periodic_tasks[-1]

    @property
    def refresh_task(self) -> ManualDelayedTask:
        return self.delayed_tasks[-1]


class FakeSource(DataSource):
    """Source whose load completes only when the test calls ``fire``."""

    def __init__(self, records=None, source_id=None):
        super().__init__(source_id)
        self._records = list(records or [])
        self.load_calls = 0

    def load(self, callback=None):
        self.load_calls += 1

    def fire(self, records=None) -> None:
        self._notify(self._records if records is None else records)


@pytest.fixture
def render_layer():
    """Fake render layer with a 100x40 viewport and 10px characters."""
    return FakeRenderLayer()


@pytest.fixture
def scheduler():
    """Hand-driven scheduler."""
    return ManualScheduler()


@pytest.fixture
def make_config():
    """Build a TickerConfig that does not auto-start."""
    def factory(**overrides) -> TickerConfig:
        overrides.setdefault('auto_start', False)
        return TickerConfig(**overrides)
    return factory


@pytest.fixture
def make_sources():
    """Create N fake sources."""
    def factory(count: int, records=None) -> List[FakeSource]:
        return [FakeSource(records=records, source_id=f"src-{i}") for i in range(count)]
    return factory


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test."""
    import logging
    logging.root.handlers = []
    logging.root.setLevel(logging.WARNING)
    package_logger = logging.getLogger('ticker')
    package_logger.handlers = []
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True
    yield
