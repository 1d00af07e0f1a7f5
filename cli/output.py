#!/usr/bin/env python3
"""
Output Formatting Module for the Distributor CLI

Provides output formatting for CLI results as tables, JSON, YAML and CSV.
"""

import csv
import io
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from tabulate import tabulate

FORMATS = ['table', 'json', 'yaml', 'csv']


class OutputFormatter:
    """Universal output formatter for CLI results."""

    def __init__(self, format_type: str = 'table',
                 color_output: bool = True,
                 max_width: Optional[int] = None):
        """
        Initialize output formatter.

        Args:
            format_type: Output format (table, json, yaml, csv)
            color_output: Enable colored output
            max_width: Maximum width for table cells
        """
        if format_type not in FORMATS:
            raise ValueError(f"Unknown output format: {format_type}")

        self.format_type = format_type
        self.color_output = color_output and sys.stdout.isatty()
        self.max_width = max_width or 120

    def format(self, data: Any, headers: Optional[List[str]] = None) -> str:
        """
        Format data according to specified format type.

        Args:
            data: Data to format
            headers: Optional headers for table/csv formats

        Returns:
            Formatted string output
        """
        if self.format_type == 'json':
            return self.format_json(data)
        elif self.format_type == 'yaml':
            return self.format_yaml(data)
        elif self.format_type == 'csv':
            return self.format_csv(data, headers)
        else:
            return self.format_table(data, headers)

    def format_json(self, data: Any) -> str:
        """Format data as JSON."""
        return json.dumps(data, indent=2, default=self._json_encoder)

    def format_yaml(self, data: Any) -> str:
        """Format data as YAML."""
        # Round-trip through JSON so YAML sees plain types only
        plain = json.loads(self.format_json(data))
        return yaml.safe_dump(plain, default_flow_style=False, sort_keys=False).rstrip('\n')

    def format_csv(self, data: Any, headers: Optional[List[str]] = None) -> str:
        """Format data as CSV."""
        if isinstance(data, dict):
            data = [data]

        if not isinstance(data, list) or not data:
            return ""

        output = io.StringIO()

        flattened_data = []
        for item in data:
            if isinstance(item, dict):
                flattened_data.append(self._flatten_dict(item))
            else:
                flattened_data.append({'value': str(item)})

        fieldnames = headers or list(flattened_data[0].keys())
        writer = csv.DictWriter(output, fieldnames=fieldnames, extrasaction='ignore')
        writer.writeheader()
        writer.writerows(flattened_data)

        return output.getvalue().strip()

    def format_table(self, data: Any, headers: Optional[List[str]] = None) -> str:
        """Format data as a table."""
        if isinstance(data, dict):
            return self._format_dict_table(data)
        elif isinstance(data, list):
            return self._format_list_table(data, headers)
        else:
            return str(data)

    def _format_dict_table(self, data: Dict[str, Any]) -> str:
        """Format dictionary as a key-value table."""
        table_data = [[self._colorize(str(k), 'key'), self._format_value(v)]
                      for k, v in data.items()]
        return tabulate(table_data, tablefmt='plain', disable_numparse=True)

    def _format_list_table(self, data: List[Any], headers: Optional[List[str]] = None) -> str:
        """Format list as a table."""
        if not data:
            return "No data available"

        if not isinstance(data[0], dict):
            return '\n'.join(str(item) for item in data)

        if headers is None:
            headers = list(data[0].keys())

        table_data = []
        for item in data:
            row = [self._truncate(self._format_value(item.get(h, ''))) for h in headers]
            table_data.append(row)

        colored_headers = [self._colorize(h, 'header') for h in headers]
        # Roots and amounts stay as written, not reparsed as numbers
        return tabulate(table_data, headers=colored_headers, tablefmt='grid',
                        disable_numparse=True)

    def _truncate(self, text: str) -> str:
        """Cut a cell to the maximum width."""
        if len(text) > self.max_width:
            return text[:self.max_width - 3] + '...'
        return text

    def _format_value(self, value: Any) -> str:
        """Format individual value for display."""
        if value is None:
            return 'null'
        elif isinstance(value, bool):
            return 'true' if value else 'false'
        elif isinstance(value, datetime):
            return value.strftime('%Y-%m-%d %H:%M:%S')
        elif isinstance(value, dict):
            return f"<{len(value)} items>"
        elif isinstance(value, list):
            if value and all(isinstance(v, str) for v in value):
                return ', '.join(value)
            return f"[{len(value)} items]"
        else:
            return str(value)

    def _flatten_dict(self, d: Dict[str, Any], parent_key: str = '', sep: str = '_') -> Dict[str, Any]:
        """Flatten nested dictionary for CSV output."""
        items = []
        for k, v in d.items():
            new_key = f"{parent_key}{sep}{k}" if parent_key else k
            if isinstance(v, dict):
                items.extend(self._flatten_dict(v, new_key, sep=sep).items())
            elif isinstance(v, list):
                items.append((new_key, json.dumps(v)))
            else:
                items.append((new_key, v))
        return dict(items)

    def _colorize(self, text: str, color_type: str) -> str:
        """Add color to text if color output is enabled."""
        if not self.color_output:
            return text

        colors = {
            'header': '\033[1;34m',
            'key': '\033[1;36m',
            'reset': '\033[0m'
        }

        color = colors.get(color_type, '')
        return f"{color}{text}{colors['reset']}" if color else text

    def _json_encoder(self, obj):
        """Custom JSON encoder for special types."""
        if isinstance(obj, datetime):
            return obj.isoformat()
        elif isinstance(obj, Path):
            return str(obj)
        elif isinstance(obj, (bytes, bytearray)):
            return "0x" + bytes(obj).hex()
        elif hasattr(obj, 'model_dump'):
            return obj.model_dump(by_alias=True, mode='json')
        else:
            return str(obj)


def format_output(data: Any, format_type: str = 'table', headers: Optional[List[str]] = None) -> str:
    """Convenience function to format data."""
    return OutputFormatter(format_type=format_type, color_output=False).format(data, headers)
