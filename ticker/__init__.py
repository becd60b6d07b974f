"""
Message Ticker - Continuously Scrolling Message Strip

Renders a strip of messages scrolling inside a fixed viewport, horizontally
or vertically, optionally grouped into labelled categories and fed by
refreshing data sources.

Components:
- TickerController: Lifecycle and control interface
- ScrollEngine: Fixed-step scroller with the per-direction wrap table
- MessageBuffer: Current/pending double buffer
- CategoryOrderer: Orders category groups
- SourceBinding: Synchronises refreshing data sources
- Layout: Renders and measures message sequences
- TickerConfig: Configuration management
"""

from ticker.buffer import MessageBuffer
from ticker.config import TickerConfig
from ticker.controller import TickerController, TickerStatus
from ticker.exceptions import ConfigError, FormatContractError, SourceError, TickerError
from ticker.geometry import Layout, Viewport
from ticker.messages import (
    CategorizedMessage,
    CategoryGroup,
    CategoryOrderer,
    MessageSequence,
    PlainMessage,
)
from ticker.scroll_engine import ScrollEngine
from ticker.sources import DataSource, HttpJsonSource, ListSource, RefreshCycle, SourceBinding

__all__ = [
    'TickerController',
    'TickerStatus',
    'TickerConfig',
    'ScrollEngine',
    'MessageBuffer',
    'CategoryOrderer',
    'CategoryGroup',
    'CategorizedMessage',
    'PlainMessage',
    'MessageSequence',
    'Layout',
    'Viewport',
    'DataSource',
    'ListSource',
    'HttpJsonSource',
    'RefreshCycle',
    'SourceBinding',
    'TickerError',
    'ConfigError',
    'FormatContractError',
    'SourceError',
]
