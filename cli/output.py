#!/usr/bin/env python3
"""
Output Formatting Module for the Light Mirror CLI

Provides output formatting for CLI results as tables, JSON or YAML.
"""

import json
from typing import Any, Dict, List

import yaml
from tabulate import tabulate


class OutputFormatter:
    """Universal output formatter for CLI results."""

    def __init__(self, format_type: str = 'table'):
        """
        Initialize output formatter.

        Args:
            format_type: Output format (table, json, yaml)
        """
        self.format_type = format_type

    def format(self, data: Any) -> str:
        """
        Format data according to specified format type.

        Args:
            data: Data to format

        Returns:
            Formatted string output
        """
        if self.format_type == 'json':
            return self.format_json(data)
        elif self.format_type == 'yaml':
            return self.format_yaml(data)
        else:
            return self.format_table(data)

    def format_json(self, data: Any) -> str:
        """Format data as JSON."""
        return json.dumps(data, indent=2, default=str)

    def format_yaml(self, data: Any) -> str:
        """Format data as YAML."""
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip('\n')

    def format_table(self, data: Any) -> str:
        """Format data as a key-value table."""
        if isinstance(data, dict):
            return self._format_dict_table(self._flatten_dict(data))
        elif isinstance(data, list):
            return '\n'.join(str(item) for item in data)
        else:
            return str(data)

    def _format_dict_table(self, data: Dict[str, Any]) -> str:
        """Format dictionary as a key-value table."""
        if not data:
            return ''

        table_data = [[key, self._format_value(value)] for key, value in data.items()]
        # Hashes and hex fields must print verbatim, never as numbers
        return tabulate(table_data, tablefmt='plain', disable_numparse=True)

    def _format_value(self, value: Any) -> str:
        """Format individual value for display."""
        if value is None:
            return 'null'
        elif isinstance(value, bool):
            return 'true' if value else 'false'
        return str(value)

    def _flatten_dict(self, d: Dict[str, Any], parent_key: str = '', sep: str = '.') -> Dict[str, Any]:
        """Flatten nested dictionaries and lists into dotted keys."""
        items: List = []
        for k, v in d.items():
            new_key = f"{parent_key}{sep}{k}" if parent_key else str(k)
            if isinstance(v, dict):
                items.extend(self._flatten_dict(v, new_key, sep=sep).items())
            elif isinstance(v, list):
                if not v:
                    items.append((new_key, '[]'))
                for i, item in enumerate(v):
                    if isinstance(item, dict):
                        items.extend(self._flatten_dict(item, f"{new_key}[{i}]", sep=sep).items())
                    else:
                        items.append((f"{new_key}[{i}]", item))
            else:
                items.append((new_key, v))
        return dict(items)
