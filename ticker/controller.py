"""
Ticker Controller

Main orchestrator for a scrolling ticker. Coordinates the SourceBinding,
MessageBuffer, Layout and ScrollEngine, and provides the control interface
used by the host: start/pause/stop, speed, direction and rotation changes,
hover and click handling.

States:
- STOPPED: initial state, and the state after stop() or destroy()
- PLAYING: the animation tick is registered
- PAUSED: the tick is unregistered and the position is frozen
"""

import logging
import threading
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, Dict, Optional, Sequence

from ticker.buffer import MessageBuffer
from ticker.common.error_handler import safe_execute
from ticker.config import ROTATIONS, TickerConfig, validate_config_section
from ticker.exceptions import ConfigError, TickerError
from ticker.geometry import Layout, Viewport
from ticker.logging_config import log_with_context
from ticker.messages import (
    EMPTY_SEQUENCE,
    CategoryOrderer,
    Formatter,
    MessageSequence,
    coerce_raw_messages,
)
from ticker.render.base import RenderLayer
from ticker.scheduler import ThreadScheduler
from ticker.scroll_engine import ScrollEngine
from ticker.sources import DataSource, SourceBinding

logger = logging.getLogger(__name__)

# (event, element_handle, record) -> None
MessageClickHandler = Callable[[Any, Any, Any], None]


class TickerStatus(str, Enum):
    """Lifecycle state of a ticker."""
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


class TickerController:
    """
    Orchestrates one ticker instance.

    Every public method and every timer or data-source callback runs under
    one re-entrant lock, so the ticker behaves as a single logical thread.
    """

    def __init__(
        self,
        render_layer: RenderLayer,
        config: Optional[TickerConfig] = None,
        sources: Optional[Sequence[DataSource]] = None,
        formatter: Optional[Formatter] = None,
        message_on_click: Optional[MessageClickHandler] = None,
        scheduler: Any = None,
        ticker_id: Optional[str] = None,
    ):
        """
        Initialize the ticker controller.

        Args:
            render_layer: Render layer the ticker draws through
            config: Ticker configuration (defaults if None)
            sources: Data sources feeding the ticker
            formatter: Record -> message formatter for source records
            message_on_click: Called with (event, element_handle, record)
            scheduler: Factory for the animation and refresh timers
            ticker_id: Identifier used in log context
        """
        self.config = config or TickerConfig()
        errors = self.config.validate()
        if errors:
            raise ConfigError("Invalid ticker configuration", context={'errors': '; '.join(errors)})

        self.ticker_id = ticker_id or f"ticker-{id(self):x}"
        self.render_layer = render_layer
        self.scheduler = scheduler or ThreadScheduler()
        self.message_on_click = message_on_click

        self._lock = threading.RLock()
        self._status = TickerStatus.STOPPED
        self._destroyed = False
        self._hovering = False
        self._saved_speed: Optional[float] = None

        self.orderer = CategoryOrderer(self.config.category_order)
        self.buffer = MessageBuffer()
        self.layout = Layout(
            render_layer,
            self.config,
            on_click=self._dispatch_click if message_on_click else None
        )
        self.engine = ScrollEngine(
            self.config.direction,
            self.config.text_rotation,
            self.config.speed,
            logger
        )
        self.engine.set_viewport(self.layout.viewport())
        self.render_layer.set_orientation(self.config.direction, self.config.text_rotation)

        self.binding = SourceBinding(
            sources or [],
            on_complete=self._on_refresh_complete,
            formatter=formatter,
            categorized=self.config.enable_category,
            orderer=self.orderer,
            scheduler=self.scheduler,
            refresh_ms=self.config.store_refresh,
            ticker_id=self.ticker_id,
        )
        self.binding.bind()

        self._tick_task = self.scheduler.periodic(
            self.tick, self.config.animate_interval, name=f"TickerAnimation-{self.ticker_id}"
        )

        if self.config.messages is not None:
            self.set_messages(self.config.messages)

        self._log(logging.INFO, (
            f"Ticker initialized: direction={self.config.direction}, speed={self.config.speed}, "
            f"interval={self.config.animate_interval}ms, sources={len(self.binding.sources)}"
        ))

        if self.config.auto_start:
            self.start()

    # -- lifecycle -----------------------------------------------------

    def get_status(self) -> TickerStatus:
        return self._status

    def start(self, resume: bool = False, auto_load: bool = True) -> None:
        """
        Start or resume scrolling.

        Args:
            resume: From PAUSED, continue from the frozen position without
                reloading sources
            auto_load: Load bound sources; when False the records they
                already hold are formatted instead
        """
        with self._lock:
            self._ensure_alive()

            if self._status is TickerStatus.PLAYING:
                return

            if self._status is TickerStatus.PAUSED and resume:
                self._tick_task.start()
                self._status = TickerStatus.PLAYING
                self._log(logging.INFO, "Ticker resumed")
                return

            if not self.buffer.is_empty:
                self._render_current()

            self._reset_position()
            self._tick_task.start()
            self._status = TickerStatus.PLAYING
            self._log(logging.INFO, "Ticker started")

            # Sources may report synchronously, so load once already playing
            if self.binding.sources:
                if auto_load:
                    self.binding.reload()
                else:
                    self.binding.activate()
                    self._offer(self.binding.collect_passive())

    def pause(self) -> None:
        """Freeze the ticker in place."""
        with self._lock:
            if self._status is not TickerStatus.PLAYING:
                return
            self._status = TickerStatus.PAUSED
            self._tick_task.stop(wait=False)
        # Join outside the lock: a tick waiting on it must be able to finish
        self._tick_task.join()
        self._log(logging.INFO, "Ticker paused")

    def stop(self, clear_content: bool = False) -> None:
        """
        Stop scrolling and clear the rendered strip.

        Args:
            clear_content: Also drop the current and pending messages
        """
        with self._lock:
            self._status = TickerStatus.STOPPED
            self._tick_task.stop(wait=False)
            self.binding.suspend()
            self.layout.clear()
            self.engine.set_extent(0)
            if clear_content:
                self.buffer.clear()
        self._tick_task.join()
        self._log(logging.INFO, f"Ticker stopped (clear_content={clear_content})")

    def reload(self) -> None:
        """Refresh all bound sources now; starts the ticker if it is stopped."""
        with self._lock:
            self._ensure_alive()
            if self._status is TickerStatus.STOPPED:
                self.start()
            else:
                self.binding.reload()

    def destroy(self) -> None:
        """Stop the ticker and detach it from its sources."""
        self.stop()
        with self._lock:
            self.binding.unbind()
            self._destroyed = True
        self._log(logging.INFO, "Ticker destroyed")

    # -- animation -----------------------------------------------------

    def tick(self) -> bool:
        """
        Run one animation step.

        Returns:
            True if the step completed a pass
        """
        with self._lock:
            if self._status is not TickerStatus.PLAYING:
                return False

            wrapped = self.engine.tick()
            if self.buffer.commit_if_due(wrapped, self.config.interrupt_update):
                self._render_current()
                self._reset_position()
                self._log(logging.DEBUG, f"Swapped in new messages (wrapped={wrapped})")
            self.render_layer.set_position(self.engine.position)
            return wrapped

    # -- messages ------------------------------------------------------

    def set_messages(self, raw: Any) -> None:
        """
        Display messages immediately.

        Accepts a string, a list of strings or (text, record) pairs, a
        mapping of category to such a list, or a MessageSequence.
        """
        sequence = coerce_raw_messages(raw, self.orderer, self.config.enable_category)
        with self._lock:
            was_empty = self.buffer.is_empty
            self.buffer.replace(sequence)
            self._render_current()
            if was_empty:
                self._reset_position()

    def update_messages(self, raw: Any, force: bool = False) -> None:
        """
        Queue messages to replace the current ones at the next safe point.

        Args:
            raw: Messages, in any form set_messages accepts
            force: Display them immediately instead
        """
        if force:
            self.set_messages(raw)
            return
        sequence = coerce_raw_messages(raw, self.orderer, self.config.enable_category)
        with self._lock:
            self._offer(sequence)

    def get_messages(self) -> MessageSequence:
        current = self.buffer.current
        return current if current is not None else EMPTY_SEQUENCE

    def get_text(self) -> str:
        """Displayed message texts joined by the message separator."""
        return self.config.message_separator.join(self.get_messages().texts())

    def _on_refresh_complete(self, sequence: MessageSequence) -> None:
        with self._lock:
            if self._destroyed:
                return
            if self._status is TickerStatus.STOPPED:
                # A load that was in flight when the ticker stopped
                self._log(logging.DEBUG, "Ticker stopped, dropping late refresh")
                return
            self._log(logging.DEBUG, f"Refresh cycle complete with {len(sequence)} messages")
            self._offer(sequence)

    def _offer(self, sequence: MessageSequence) -> None:
        self.buffer.set_pending(sequence)
        # Nothing on screen: no pass to finish first
        if self.buffer.is_empty and self.buffer.commit_if_due(False, False):
            self._render_current()
            self._reset_position()

    # -- scroll settings -----------------------------------------------

    def set_speed(self, speed: float) -> None:
        if speed < 0:
            raise ConfigError("Speed must not be negative", field='speed', value=speed)
        with self._lock:
            self.config.speed = float(speed)
            if self._hovering:
                self._saved_speed = float(speed)
            else:
                self.engine.set_speed(speed)

    def set_direction(self, direction: str) -> bool:
        """
        Change direction within the current axis.

        Returns:
            False when ``direction`` is on the other axis; nothing changes
        """
        with self._lock:
            if not self.engine.set_direction(direction):
                return False
            self.config.direction = direction
            self.render_layer.set_orientation(direction, self.engine.rotation)
            return True

    def set_text_rotation(self, rotation: int) -> bool:
        """
        Change the text rotation used by vertical tickers.

        Returns:
            True if the rotation changed
        """
        if rotation not in ROTATIONS:
            raise ConfigError("Text rotation must be -90 or 90", field='text_rotation', value=rotation)
        with self._lock:
            if rotation == self.engine.rotation:
                return False
            self.engine.set_rotation(rotation)
            self.config.text_rotation = rotation
            self.render_layer.set_orientation(self.engine.direction, rotation)
            self._render_current()
            self._reset_position()
            return True

    def reinitialize_geometry(self, direction: str, rotation: Optional[int] = None) -> None:
        """Switch to any direction, including the other axis."""
        with self._lock:
            self.engine.reinitialize(direction, rotation)
            self.config.direction = direction
            self.config.text_rotation = self.engine.rotation
            self.render_layer.set_orientation(direction, self.engine.rotation)
            self._render_current()
            self._reset_position()
        self._log(logging.INFO, f"Geometry reinitialized: direction={direction}, rotation={self.engine.rotation}")

    def set_animate_interval(self, interval_ms: int) -> None:
        if not interval_ms:
            return
        with self._lock:
            self.config.animate_interval = int(interval_ms)
            self._tick_task.set_interval(self.config.animate_interval)

    def set_store_refresh(self, refresh_ms: int) -> None:
        with self._lock:
            self.config.store_refresh = int(refresh_ms)
            self.binding.set_refresh_interval(self.config.store_refresh)

    def update_config(self, new_config: Dict[str, Any]) -> None:
        """
        Apply scalar settings from a configuration dictionary.

        The update is validated on a copy first; a rejected update leaves the
        current configuration untouched.

        Raises:
            ConfigError: If the new values are invalid
        """
        section = new_config.get('ticker', {})
        errors = validate_config_section(section)
        candidate = replace(self.config)
        if not errors:
            candidate.update(new_config)
            errors = candidate.validate()
        if errors:
            raise ConfigError("Invalid ticker configuration", context={'errors': '; '.join(errors)})

        with self._lock:
            old_separators = (self.config.message_separator, self.config.category_separator)
            self.config = candidate
            self.layout.config = candidate

            self.set_speed(self.config.speed)
            self.set_animate_interval(self.config.animate_interval)
            self.set_store_refresh(self.config.store_refresh)
            self.orderer.category_order = list(self.config.category_order)

            separators = (self.config.message_separator, self.config.category_separator)
            if separators != old_separators and not self.buffer.is_empty:
                self._render_current()

    # -- host events ---------------------------------------------------

    def on_resize(self, width: float, height: float) -> None:
        """Resize the viewport of the render layer and the scroll engine."""
        width, height = max(0, width), max(0, height)
        with self._lock:
            self.render_layer.resize(width, height)
            self.engine.set_viewport(Viewport(width, height))

    def on_mouse_over(self) -> None:
        with self._lock:
            if not self.config.pause_on_mouse_over or self._hovering:
                return
            self._hovering = True
            self._saved_speed = self.engine.speed
            self.engine.set_speed(0)

    def on_mouse_out(self) -> None:
        with self._lock:
            if not self._hovering:
                return
            self._hovering = False
            if self._saved_speed is not None:
                self.engine.set_speed(self._saved_speed)
            self._saved_speed = None

    def _dispatch_click(self, event: Any, handle: Any, record: Any) -> None:
        safe_execute(
            lambda: self.message_on_click(event, handle, record),
            "Message click handler failed",
            logger
        )

    # -- monitoring ----------------------------------------------------

    def get_scroll_info(self) -> Dict[str, Any]:
        """Get current ticker state information."""
        with self._lock:
            return {
                **self.engine.get_scroll_info(),
                'status': self._status.value,
                'hovering': self._hovering,
                'buffer': self.buffer.get_status(),
                'reported_count': self.binding.reported_count,
                'refresh_commits': self.binding.commits,
            }

    # -- helpers -------------------------------------------------------

    def _render_current(self) -> None:
        self.engine.set_extent(self.layout.render(self.buffer.current))

    def _reset_position(self) -> None:
        self.render_layer.set_position(self.engine.reset_position())

    def _ensure_alive(self) -> None:
        if self._destroyed:
            raise TickerError("Ticker has been destroyed", context={'ticker_id': self.ticker_id})

    def _log(self, level: int, message: str) -> None:
        log_with_context(logger, level, message, ticker_id=self.ticker_id)
