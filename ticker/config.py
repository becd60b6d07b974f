"""
Ticker Configuration

Handles configuration for the scrolling ticker including scroll direction,
speed, refresh timing, separators and category display settings.
"""

import logging
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

import jsonschema
from jsonschema import Draft7Validator

from ticker.exceptions import ConfigError

logger = logging.getLogger(__name__)

HORIZONTAL_DIRECTIONS = ('left', 'right')
VERTICAL_DIRECTIONS = ('up', 'down')
DIRECTIONS = HORIZONTAL_DIRECTIONS + VERTICAL_DIRECTIONS
ROTATIONS = (-90, 90)

TICKER_CONFIG_SCHEMA: Dict[str, Any] = {
    'type': 'object',
    'properties': {
        'direction': {'type': 'string', 'enum': list(DIRECTIONS)},
        'text_rotation': {'type': 'integer', 'enum': list(ROTATIONS)},
        'speed': {'type': 'number', 'minimum': 0},
        'animate_interval': {'type': 'integer', 'minimum': 1},
        'store_refresh': {'type': 'integer', 'minimum': 0},
        'interrupt_update': {'type': 'boolean'},
        'pause_on_mouse_over': {'type': 'boolean'},
        'message_separator': {'type': 'string'},
        'category_separator': {'type': 'string'},
        'category_order': {'type': 'array', 'items': {'type': 'string'}},
        'enable_category': {'type': 'boolean'},
        'category_tag_styles': {
            'type': 'object',
            'additionalProperties': {'type': 'string'},
        },
        'default_tag_style': {'type': 'string'},
        'auto_start': {'type': 'boolean'},
        'messages': {},
    },
    'additionalProperties': False,
}


def validate_config_section(section: Dict[str, Any]) -> List[str]:
    """
    Validate a raw ``ticker`` configuration section against the schema.

    Args:
        section: Raw configuration dictionary

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    try:
        validator = Draft7Validator(TICKER_CONFIG_SCHEMA)
        for error in sorted(validator.iter_errors(section), key=lambda e: list(e.path)):
            path = '.'.join(str(p) for p in error.path) or '<root>'
            errors.append(f"{path}: {error.message}")
    except jsonschema.SchemaError as e:
        errors.append(f"Schema error: {e}")
    return errors


@dataclass
class TickerConfig:
    """Configuration for a ticker instance."""

    # Scroll settings
    direction: str = 'left'
    text_rotation: int = -90
    speed: float = 2.0  # Pixels per tick
    animate_interval: int = 30  # Milliseconds between ticks

    # Data refresh
    store_refresh: int = 30000  # Milliseconds, 0 disables periodic refresh
    interrupt_update: bool = False

    # Interaction
    pause_on_mouse_over: bool = True

    # Presentation
    message_separator: str = ' '
    category_separator: str = ' -- '
    category_order: List[str] = field(default_factory=list)
    enable_category: bool = False
    category_tag_styles: Dict[str, str] = field(default_factory=dict)
    default_tag_style: str = ''

    auto_start: bool = True
    messages: Optional[Any] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'TickerConfig':
        """
        Create TickerConfig from main configuration dictionary.

        Args:
            config: Main config dict (expects config['ticker'])

        Returns:
            TickerConfig instance

        Raises:
            ConfigError: If the section does not match the schema
        """
        section = config.get('ticker', {})

        errors = validate_config_section(section)
        if errors:
            raise ConfigError(
                "Invalid ticker configuration",
                context={'errors': '; '.join(errors)}
            )

        return cls(
            direction=section.get('direction', 'left'),
            text_rotation=int(section.get('text_rotation', -90)),
            speed=float(section.get('speed', 2.0)),
            animate_interval=int(section.get('animate_interval', 30)),
            store_refresh=int(section.get('store_refresh', 30000)),
            interrupt_update=section.get('interrupt_update', False),
            pause_on_mouse_over=section.get('pause_on_mouse_over', True),
            message_separator=section.get('message_separator', ' '),
            category_separator=section.get('category_separator', ' -- '),
            category_order=list(section.get('category_order', [])),
            enable_category=section.get('enable_category', False),
            category_tag_styles=dict(section.get('category_tag_styles', {})),
            default_tag_style=section.get('default_tag_style', ''),
            auto_start=section.get('auto_start', True),
            messages=section.get('messages'),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return {
            'direction': self.direction,
            'text_rotation': self.text_rotation,
            'speed': self.speed,
            'animate_interval': self.animate_interval,
            'store_refresh': self.store_refresh,
            'interrupt_update': self.interrupt_update,
            'pause_on_mouse_over': self.pause_on_mouse_over,
            'message_separator': self.message_separator,
            'category_separator': self.category_separator,
            'category_order': list(self.category_order),
            'enable_category': self.enable_category,
            'category_tag_styles': dict(self.category_tag_styles),
            'default_tag_style': self.default_tag_style,
            'auto_start': self.auto_start,
            'messages': self.messages,
        }

    @property
    def is_vertical(self) -> bool:
        return self.direction in VERTICAL_DIRECTIONS

    def get_tag_style(self, category: str) -> str:
        """Style class for a category label, falling back to the default."""
        return self.category_tag_styles.get(category) or self.default_tag_style

    def validate(self) -> List[str]:
        """
        Validate configuration values.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if self.direction not in DIRECTIONS:
            errors.append(f"direction must be one of {DIRECTIONS}, got {self.direction!r}")
        if self.text_rotation not in ROTATIONS:
            errors.append(f"text_rotation must be -90 or 90, got {self.text_rotation}")
        if self.speed < 0:
            errors.append(f"speed must be >= 0, got {self.speed}")
        if self.animate_interval < 1:
            errors.append(f"animate_interval must be >= 1, got {self.animate_interval}")
        if self.store_refresh < 0:
            errors.append(f"store_refresh must be >= 0, got {self.store_refresh}")

        return errors

    def update(self, new_config: Dict[str, Any]) -> None:
        """
        Update configuration from new values.

        Only scalar scroll and refresh settings are applied here; direction,
        rotation and categorisation changes go through the controller.

        Args:
            new_config: New configuration values to apply
        """
        section = new_config.get('ticker', {})

        if 'speed' in section:
            self.speed = float(section['speed'])
        if 'animate_interval' in section:
            self.animate_interval = int(section['animate_interval'])
        if 'store_refresh' in section:
            self.store_refresh = int(section['store_refresh'])
        if 'interrupt_update' in section:
            self.interrupt_update = section['interrupt_update']
        if 'pause_on_mouse_over' in section:
            self.pause_on_mouse_over = section['pause_on_mouse_over']
        if 'message_separator' in section:
            self.message_separator = section['message_separator']
        if 'category_separator' in section:
            self.category_separator = section['category_separator']
        if 'category_order' in section:
            self.category_order = list(section['category_order'])

        logger.info(
            "Ticker config updated: speed=%.1f, interval=%dms, refresh=%dms",
            self.speed, self.animate_interval, self.store_refresh
        )
