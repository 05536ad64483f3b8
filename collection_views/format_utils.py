"""
Output format utilities for collection-views CLI commands.

Provides functions to format data as JSON, JSONL and YAML.
"""

import json
import os
from typing import Any, Dict, Iterable, Iterator, Optional

import yaml

FORMATS = ('json', 'jsonl', 'yaml')


def format_output(data: Iterable[Dict[str, Any]], format: str) -> Iterator[str]:
    """
    Format data according to the specified format.

    Args:
        data: Dictionaries to format
        format: Output format (json, jsonl, yaml)

    Yields:
        Formatted strings for output
    """
    if format == "jsonl":
        yield from format_jsonl(data)
    elif format == "json":
        yield from format_json(data)
    elif format == "yaml":
        yield from format_yaml(data)
    else:
        raise ValueError(f"Unknown format: {format}")


def format_jsonl(data: Iterable[Dict[str, Any]]) -> Iterator[str]:
    """Format data as JSON Lines (one JSON object per line)."""
    for item in data:
        yield json.dumps(item, ensure_ascii=False)


def format_json(data: Iterable[Dict[str, Any]]) -> Iterator[str]:
    """Format a single item as a JSON object, several as an array."""
    all_data = list(data)
    document = all_data[0] if len(all_data) == 1 else all_data
    yield json.dumps(document, ensure_ascii=False, indent=2)


def format_yaml(data: Iterable[Dict[str, Any]]) -> Iterator[str]:
    """Format data as YAML."""
    all_data = list(data)
    document = all_data[0] if len(all_data) == 1 else all_data
    yield yaml.dump(document, default_flow_style=False, allow_unicode=True, sort_keys=False)


def get_format_from_env(default: Optional[str] = 'json') -> Optional[str]:
    """
    Get output format from environment variable.

    Checks COLLECTION_VIEWS_FORMAT environment variable.
    """
    format = os.environ.get('COLLECTION_VIEWS_FORMAT', '').lower()
    if format not in FORMATS:
        return default
    return format
