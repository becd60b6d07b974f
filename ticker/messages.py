"""
Ticker Messages

Data model for ticker content and the conversion of raw input into it:

- PlainMessage / CategorizedMessage: formatter output, checked once at the boundary
- CategoryGroup: a labelled run of messages
- MessageSequence: what the buffer holds, either flat or grouped
- CategoryOrderer: arranges grouped messages by a preferred category order
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ticker.exceptions import FormatContractError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlainMessage:
    """A single ticker message and the record it was formatted from."""
    text: str
    record: Any = None


@dataclass(frozen=True)
class CategorizedMessage:
    """Formatter output when categorisation is enabled."""
    category: str
    text: str
    record: Any = None


@dataclass(frozen=True)
class CategoryGroup:
    """Messages displayed after a category label."""
    name: str
    messages: Tuple[PlainMessage, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.messages


FormattedMessage = Union[PlainMessage, CategorizedMessage]
Formatter = Callable[[Any], Any]


@dataclass(frozen=True)
class MessageSequence:
    """
    Immutable unit of content swapped in and out of the buffer.

    Exactly one of ``messages`` (flat) or ``groups`` (categorised) is used,
    selected by ``categorized``.
    """
    categorized: bool = False
    messages: Tuple[PlainMessage, ...] = ()
    groups: Tuple[CategoryGroup, ...] = ()

    @classmethod
    def flat(cls, messages: Iterable[PlainMessage]) -> 'MessageSequence':
        return cls(categorized=False, messages=tuple(messages))

    @classmethod
    def grouped(cls, groups: Iterable[CategoryGroup]) -> 'MessageSequence':
        return cls(categorized=True, groups=tuple(groups))

    @property
    def is_empty(self) -> bool:
        if self.categorized:
            return not self.groups
        return not self.messages

    def iter_messages(self) -> Iterable[PlainMessage]:
        """All messages in display order, regardless of representation."""
        if self.categorized:
            for group in self.groups:
                yield from group.messages
        else:
            yield from self.messages

    def texts(self) -> List[str]:
        return [message.text for message in self.iter_messages()]

    def __len__(self) -> int:
        return sum(1 for _ in self.iter_messages())


EMPTY_SEQUENCE = MessageSequence()


def normalize_formatted(output: Any, record: Any, categorized: bool) -> FormattedMessage:
    """
    Check a formatter result against the categorisation contract.

    Args:
        output: Whatever the formatter returned
        record: Record the output was produced from
        categorized: Whether categorisation is enabled

    Returns:
        PlainMessage or CategorizedMessage

    Raises:
        FormatContractError: If the output shape does not match ``categorized``
    """
    if isinstance(output, CategorizedMessage):
        if not categorized:
            raise FormatContractError(
                "Formatter returned a categorised message but categorisation is disabled",
                record=record, output=output
            )
        return output

    if isinstance(output, PlainMessage):
        if categorized:
            raise FormatContractError(
                "Formatter returned a plain message but categorisation is enabled",
                record=record, output=output
            )
        return output

    if isinstance(output, str):
        if categorized:
            raise FormatContractError(
                "Formatter must return (category, text) when categorisation is enabled",
                record=record, output=output
            )
        return PlainMessage(output, record)

    if isinstance(output, (tuple, list)) and len(output) == 2:
        if not categorized:
            raise FormatContractError(
                "Formatter must return a string when categorisation is disabled",
                record=record, output=output
            )
        category, text = output
        if not isinstance(category, str) or not isinstance(text, str):
            raise FormatContractError(
                "Category and message text must both be strings",
                record=record, output=output
            )
        return CategorizedMessage(category, text, record)

    raise FormatContractError(
        "Unsupported formatter output",
        record=record, output=output
    )


def format_records(records: Iterable[Any], formatter: Formatter,
                   categorized: bool) -> List[FormattedMessage]:
    """Run ``formatter`` over every record and validate each result."""
    return [normalize_formatted(formatter(record), record, categorized) for record in records]


class CategoryOrderer:
    """
    Orders category groups by a preferred list of names.

    Preferred categories come first, in the given order, and are kept even
    when they received no messages. Categories not in the list follow in the
    order they were first encountered.
    """

    def __init__(self, category_order: Optional[Sequence[str]] = None):
        self.category_order: List[str] = list(category_order or [])

    def order(self, by_category: Mapping[str, Sequence[Tuple[str, Any]]]) -> List[CategoryGroup]:
        """
        Build ordered groups from a category -> [(text, record), ...] mapping.

        Args:
            by_category: Mapping in encounter order

        Returns:
            Ordered list of CategoryGroup
        """
        # Seeded slots keep their position even if empty
        slots: Dict[str, List[PlainMessage]] = {name: [] for name in self.category_order}
        extra: Dict[str, List[PlainMessage]] = {}

        for name, pairs in by_category.items():
            target = slots.get(name)
            if target is None:
                target = extra.setdefault(name, [])
            target.extend(PlainMessage(text, record) for text, record in pairs)

        groups = [CategoryGroup(name, tuple(slots[name])) for name in slots]
        groups.extend(CategoryGroup(name, tuple(messages)) for name, messages in extra.items())
        return groups

    def build(self, messages: Iterable[CategorizedMessage]) -> MessageSequence:
        """Group categorised messages, merging repeated category names."""
        by_category: Dict[str, List[Tuple[str, Any]]] = {}
        for message in messages:
            by_category.setdefault(message.category, []).append((message.text, message.record))
        return MessageSequence.grouped(self.order(by_category))


def coerce_raw_messages(raw: Any, orderer: CategoryOrderer, categorized: bool) -> MessageSequence:
    """
    Turn directly supplied messages into a MessageSequence.

    Flat tickers accept a single string or a list of strings or
    ``(text, record)`` pairs. Categorised tickers accept a mapping of category
    name to such a list, or a list of ``(category, text)`` pairs and
    CategorizedMessage objects. A ready MessageSequence must already have the
    matching shape. ``None`` and ``''`` give an empty sequence.

    Raises:
        FormatContractError: If the input shape does not match ``categorized``
        TypeError: If the input is not a supported type at all
    """
    empty = MessageSequence(categorized=categorized)
    if raw is None or (isinstance(raw, str) and not raw):
        return empty

    if isinstance(raw, MessageSequence):
        if raw.categorized != categorized:
            raise FormatContractError(
                "Message sequence shape does not match the ticker's categorisation",
                output=raw, context={'categorized': categorized}
            )
        return raw

    if isinstance(raw, Mapping):
        if not categorized:
            raise FormatContractError(
                "Category mapping given but categorisation is disabled", output=raw)
        by_category = {name: [_as_pair(item) for item in items] for name, items in raw.items()}
        return MessageSequence.grouped(orderer.order(by_category))

    if isinstance(raw, str):
        if categorized:
            raise FormatContractError(
                "Plain text given but categorisation is enabled", output=raw)
        return MessageSequence.flat([PlainMessage(raw)])

    if isinstance(raw, Iterable):
        if categorized:
            return orderer.build(normalize_formatted(item, None, True) for item in raw)
        return MessageSequence.flat(PlainMessage(*_as_pair(item)) for item in raw)

    raise TypeError(f"Cannot build ticker messages from {type(raw).__name__}")


def _as_pair(item: Any) -> Tuple[str, Any]:
    if isinstance(item, PlainMessage):
        return item.text, item.record
    if isinstance(item, str):
        return item, None
    text, record = item
    return str(text), record
