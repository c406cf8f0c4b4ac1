"""Renderers: rich terminal output and camelCase JSON."""
