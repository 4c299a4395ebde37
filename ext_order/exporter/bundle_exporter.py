"""Concatenate ordered units, optionally minify, and write the bundle."""

from __future__ import annotations

import logging
from pathlib import Path

from ext_order.errors import OrderError
from ext_order.models import SourceUnit

logger = logging.getLogger(__name__)


class MinifyError(OrderError):
    """The minifier is unavailable or failed."""


def concat_units(units: list[SourceUnit], separator: str = "\n") -> str:
    return separator.join(unit.content for unit in units)


def minify_source(source: str) -> str:
    try:
        import rjsmin
    except ImportError:
        raise MinifyError(
            "rjsmin is required for minification. "
            "Install with: pip install 'ext-order[minify]'"
        )

    try:
        return rjsmin.jsmin(source)
    except Exception as e:
        raise MinifyError(f"Minifying error. {e}") from e


def write_bundle(source: str, output_path: Path, encoding: str = "utf-8") -> int:
    """Write ``source`` to ``output_path`` and return the number of bytes written."""
    data = source.encode(encoding)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        output_path.write_bytes(data)
    except OSError as e:
        raise OrderError(f"Error writing output file. {e}") from e
    logger.info("Wrote %d bytes to %s", len(data), output_path)
    return len(data)
