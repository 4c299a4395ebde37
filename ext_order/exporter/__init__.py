"""Exporter layer."""

from ext_order.exporter.bundle_exporter import concat_units, minify_source, write_bundle

__all__ = ["concat_units", "minify_source", "write_bundle"]
