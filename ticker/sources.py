"""
Data Sources and Refresh Synchronisation

A ticker can be fed by any number of data sources. Each source loads its
records asynchronously and announces them through a "data ready" event.
SourceBinding listens to all of them, formats their records and, once every
bound source has reported in the current refresh cycle, hands one combined
MessageSequence to the caller.

Duplicate arrivals: a source that reports again in a cycle it has already
reported in does not advance the cycle; its new records replace its earlier
contribution, so nothing is counted or displayed twice.
"""

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from itertools import count
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import requests

from ticker.common.error_handler import retry_on_failure
from ticker.exceptions import ConfigError, SourceError
from ticker.logging_config import log_with_context
from ticker.messages import (
    CategoryOrderer,
    FormattedMessage,
    Formatter,
    MessageSequence,
    format_records,
)

logger = logging.getLogger(__name__)

# (source, records) -> None
DataReadyListener = Callable[['DataSource', List[Any]], None]
# (source, records or None, error or None) -> None
LoadCallback = Callable[['DataSource', Optional[List[Any]], Optional[SourceError]], None]

_source_ids = count(1)


class DataSource(ABC):
    """
    A store of records that can be (re)loaded.

    Listeners are called with ``(source, records)`` every time a load
    completes.
    """

    def __init__(self, source_id: Optional[str] = None):
        self.source_id = source_id or f"{type(self).__name__.lower()}-{next(_source_ids)}"
        self._records: List[Any] = []
        self._listeners: List[DataReadyListener] = []
        self._listener_lock = threading.Lock()

    @property
    def records(self) -> List[Any]:
        """Records from the last completed load."""
        return list(self._records)

    def add_listener(self, listener: DataReadyListener) -> None:
        with self._listener_lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: DataReadyListener) -> None:
        with self._listener_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @abstractmethod
    def load(self, callback: Optional[LoadCallback] = None) -> Any:
        """Start loading records. Completion is reported via listeners."""

    def _notify(self, records: List[Any]) -> None:
        self._records = list(records)
        with self._listener_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(self, self.records)


class ListSource(DataSource):
    """
    In-memory source.

    ``load`` re-reads records from ``loader`` when one is given and reports
    them synchronously.
    """

    def __init__(self, records: Optional[Iterable[Any]] = None,
                 loader: Optional[Callable[[], Iterable[Any]]] = None,
                 source_id: Optional[str] = None):
        super().__init__(source_id)
        self._records = list(records or [])
        self.loader = loader
        self.load_count = 0

    def set_records(self, records: Iterable[Any], notify: bool = False) -> None:
        self._records = list(records)
        if notify:
            self._notify(self._records)

    def load(self, callback: Optional[LoadCallback] = None) -> List[Any]:
        self.load_count += 1
        records = list(self.loader()) if self.loader else self.records
        self._notify(records)
        if callback:
            callback(self, self.records, None)
        return self.records


class HttpJsonSource(DataSource):
    """
    Source backed by a JSON HTTP endpoint.

    The response is expected to be an object whose ``root`` property holds
    the list of records (``{"success": true, "rows": [...]}``), or a bare
    list. Loads run on a background thread pool so the caller never blocks.
    """

    def __init__(self, url: str, params: Optional[Dict[str, Any]] = None,
                 root: Optional[str] = 'rows', timeout: float = 15.0,
                 max_retries: int = 3, retry_delay: float = 1.0,
                 session: Optional[requests.Session] = None,
                 executor: Optional[ThreadPoolExecutor] = None,
                 source_id: Optional[str] = None):
        super().__init__(source_id)
        self.url = url
        self.params = dict(params or {})
        self.root = root
        self.timeout = timeout

        self.session = session or requests.Session()
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="TickerSource")

        self._fetch_with_retry = retry_on_failure(
            max_attempts=max_retries,
            delay=retry_delay,
            exceptions=(requests.RequestException,),
            logger=logger,
        )(self._fetch)

        self.stats = {
            'loads': 0,
            'failures': 0,
        }

    def load(self, callback: Optional[LoadCallback] = None) -> Future:
        future = self.executor.submit(self._load, callback)
        future.add_done_callback(self._log_unexpected)
        return future

    def close(self) -> None:
        if self._owns_executor:
            self.executor.shutdown(wait=False)
        self.session.close()

    def _load(self, callback: Optional[LoadCallback]) -> Optional[List[Any]]:
        try:
            records = self._fetch_with_retry()
        except (requests.RequestException, ValueError, SourceError) as e:
            error = e if isinstance(e, SourceError) else SourceError(
                f"Failed to load {self.url}: {e}", source_id=self.source_id,
                context={'error_type': type(e).__name__})
            self.stats['failures'] += 1
            log_with_context(logger, logging.ERROR, str(error), source_id=self.source_id)
            if callback:
                callback(self, None, error)
            return None

        self.stats['loads'] += 1
        log_with_context(logger, logging.DEBUG, f"Loaded {len(records)} records",
                         source_id=self.source_id)
        self._notify(records)
        if callback:
            callback(self, self.records, None)
        return records

    def _fetch(self) -> List[Any]:
        response = self.session.get(self.url, params=self.params, timeout=self.timeout)
        response.raise_for_status()
        payload = response.json()
        return self._extract_records(payload)

    def _extract_records(self, payload: Any) -> List[Any]:
        if isinstance(payload, list):
            return payload
        if not isinstance(payload, dict):
            raise SourceError("Unexpected JSON payload", source_id=self.source_id,
                              context={'type': type(payload).__name__})
        if payload.get('success') is False:
            raise SourceError(str(payload.get('err') or "Remote reported failure"),
                              source_id=self.source_id)
        records = payload.get(self.root) if self.root else payload
        if not isinstance(records, list):
            raise SourceError(f"Missing '{self.root}' list in response", source_id=self.source_id)
        return records

    def _log_unexpected(self, future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.error("Unhandled error while loading %s", self.source_id,
                         exc_info=(type(error), error, error.__traceback__))


class RefreshCycle:
    """
    Tracks which of N sources have reported in the current refresh.

    The cycle is complete when every source has reported once.
    """

    def __init__(self, expected: int):
        self.expected = expected
        self._contributions: Dict[int, List[FormattedMessage]] = {}
        self.duplicates = 0

    @property
    def reported_count(self) -> int:
        return len(self._contributions)

    @property
    def is_complete(self) -> bool:
        return self.expected > 0 and self.reported_count >= self.expected

    def record(self, index: int, messages: List[FormattedMessage]) -> bool:
        """
        Store one source's formatted messages.

        Returns:
            True if this arrival completed the cycle
        """
        if index in self._contributions:
            self.duplicates += 1
            self._contributions[index] = messages
            return False
        self._contributions[index] = messages
        return self.is_complete

    def messages(self) -> List[FormattedMessage]:
        """Contributions in binding order."""
        collected: List[FormattedMessage] = []
        for index in sorted(self._contributions):
            collected.extend(self._contributions[index])
        return collected

    def reset(self) -> None:
        self._contributions = {}


class SourceBinding:
    """
    Binds data sources to a ticker.

    Formats every record a source reports, synchronises the N sources into
    one commit per refresh cycle and schedules the next refresh.
    """

    def __init__(
        self,
        sources: Sequence[DataSource],
        on_complete: Callable[[MessageSequence], None],
        formatter: Optional[Formatter] = None,
        categorized: bool = False,
        orderer: Optional[CategoryOrderer] = None,
        scheduler: Any = None,
        refresh_ms: int = 0,
        ticker_id: Optional[str] = None,
    ):
        """
        Initialize the binding.

        Args:
            sources: Data sources, in display order
            on_complete: Receives the combined sequence of each completed cycle
            formatter: Record -> message formatter
            categorized: Whether the formatter returns (category, text) pairs
            orderer: Category ordering for grouped output
            scheduler: Factory for the refresh timer
            refresh_ms: Delay before the next refresh, 0 disables it
            ticker_id: Owning ticker, for log context
        """
        self.sources = list(sources)
        if categorized and formatter is None and self.sources:
            raise ConfigError("A message formatter is required when categorisation is enabled",
                              field='formatter')

        self.on_complete = on_complete
        self.formatter = formatter or str
        self.categorized = categorized
        self.orderer = orderer or CategoryOrderer()
        self.refresh_ms = refresh_ms
        self.ticker_id = ticker_id

        self.cycle = RefreshCycle(len(self.sources))
        self.commits = 0
        # The refresh timer is only armed while active
        self.active = False
        self._lock = threading.RLock()
        self._listeners: List[DataReadyListener] = []
        self._refresh_task = scheduler.delayed(self.reload, name="TickerRefresh") if scheduler else None

    @property
    def reported_count(self) -> int:
        return self.cycle.reported_count

    def bind(self) -> None:
        """Register a data-ready listener on every source."""
        if self._listeners:
            return
        for index, source in enumerate(self.sources):
            listener = self._make_listener(index)
            source.add_listener(listener)
            self._listeners.append(listener)
        log_with_context(logger, logging.DEBUG, f"Bound {len(self.sources)} data sources",
                         ticker_id=self.ticker_id)

    def unbind(self) -> None:
        for source, listener in zip(self.sources, self._listeners):
            source.remove_listener(listener)
        self._listeners = []
        self.suspend()

    def activate(self) -> None:
        with self._lock:
            self.active = True

    def suspend(self) -> None:
        """Stop scheduling refreshes; loads already in flight may still report."""
        with self._lock:
            self.active = False
            self.cancel_refresh()

    def reload(self) -> None:
        """Start a new refresh cycle and ask every source to load."""
        with self._lock:
            self.active = True
            self.cycle.reset()
        log_with_context(logger, logging.DEBUG, f"Reloading {len(self.sources)} data sources",
                         ticker_id=self.ticker_id)
        for source in self.sources:
            source.load()

    def collect_passive(self) -> MessageSequence:
        """Format the records sources already hold, without loading."""
        messages: List[FormattedMessage] = []
        for source in self.sources:
            messages.extend(format_records(source.records, self.formatter, self.categorized))
        return self._assemble(messages)

    def set_refresh_interval(self, refresh_ms: int) -> None:
        self.refresh_ms = refresh_ms
        if not refresh_ms:
            self.cancel_refresh()

    def schedule_refresh(self) -> None:
        """(Re)arm the refresh timer, cancelling any earlier schedule."""
        with self._lock:
            if not self.active:
                log_with_context(logger, logging.DEBUG, "Binding suspended, refresh not scheduled",
                                 ticker_id=self.ticker_id)
                return
            if self._refresh_task is not None and self.refresh_ms:
                self._refresh_task.delay(self.refresh_ms)

    def cancel_refresh(self) -> None:
        if self._refresh_task is not None:
            self._refresh_task.cancel()

    def _make_listener(self, index: int) -> DataReadyListener:
        def listener(source: DataSource, records: List[Any]) -> None:
            self._on_data_ready(index, source, records)
        return listener

    def _on_data_ready(self, index: int, source: DataSource, records: List[Any]) -> None:
        messages = format_records(records, self.formatter, self.categorized)

        with self._lock:
            complete = self.cycle.record(index, messages)
            log_with_context(
                logger, logging.DEBUG,
                f"Source reported {len(messages)} messages "
                f"({self.cycle.reported_count}/{self.cycle.expected})",
                ticker_id=self.ticker_id, source_id=source.source_id
            )
            if not complete:
                return
            sequence = self._assemble(self.cycle.messages())
            self.cycle.reset()
            self.commits += 1

        self.on_complete(sequence)
        self.schedule_refresh()

    def _assemble(self, messages: List[FormattedMessage]) -> MessageSequence:
        if self.categorized:
            return self.orderer.build(messages)
        return MessageSequence.flat(messages)
