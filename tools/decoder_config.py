#!/usr/bin/env python3
"""
decoder_config.py - YAML configuration for the uplink decoder

Example (config/decoder.yaml):

    decoder:
      derived_quantities: true   # add dewpoint_c / heat_index_c
      key_style: snake           # or 'legacy' for vBat, tempC, ...
    output:
      format: json               # or 'yaml'
    logging:
      level: WARNING

Every key is optional; missing sections fall back to the defaults below.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


KEY_STYLES = ('snake', 'legacy')
OUTPUT_FORMATS = ('json', 'yaml')

_KNOWN = {
    'decoder': {'derived_quantities', 'key_style'},
    'output': {'format'},
    'logging': {'level'},
}


@dataclass
class DecoderConfig:
    """Settings shared by the decoder, encoder and CLI."""
    derived_quantities: bool = True
    key_style: str = 'snake'
    output_format: str = 'json'
    log_level: str = 'WARNING'
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        if not isinstance(self.derived_quantities, bool):
            raise ValueError(
                f"derived_quantities must be true or false, got {self.derived_quantities!r}"
            )
        if self.key_style not in KEY_STYLES:
            raise ValueError(f"key_style must be one of {KEY_STYLES}, got '{self.key_style}'")
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"output format must be one of {OUTPUT_FORMATS}, got '{self.output_format}'")
        level = str(self.log_level).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {self.log_level}")
        self.log_level = level

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> 'DecoderConfig':
        raw = raw or {}
        if not isinstance(raw, dict):
            raise ValueError("Config root must be a mapping")

        # an empty YAML section loads as None
        raw = {section: {} if value is None else value for section, value in raw.items()}
        for section, value in raw.items():
            if section not in _KNOWN:
                raise ValueError(f"Unknown config section: {section}")
            if not isinstance(value, dict):
                raise ValueError(f"Config section '{section}' must be a mapping")
            unknown = set(value) - _KNOWN[section]
            if unknown:
                raise ValueError(f"Unknown keys in '{section}': {', '.join(sorted(unknown))}")

        decoder = raw.get('decoder', {})
        return cls(
            derived_quantities=decoder.get('derived_quantities', True),
            key_style=decoder.get('key_style', 'snake'),
            output_format=raw.get('output', {}).get('format', 'json'),
            log_level=raw.get('logging', {}).get('level', 'WARNING'),
            raw=raw,
        )

    def get(self, key_path: str, default: Any = None) -> Any:
        """Look up a raw value using dot notation (e.g. 'decoder.key_style')."""
        value: Any = self.raw
        for key in key_path.split('.'):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value


def load_config(path: Optional[Union[str, Path]] = None) -> DecoderConfig:
    """Load configuration from a YAML file; no path gives the defaults."""
    if path is None:
        return DecoderConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        return DecoderConfig.from_dict(yaml.safe_load(f))
