"""Source file collection."""

from ext_order.scanner.file_scanner import collect_files, load_units

__all__ = ["collect_files", "load_units"]
