"""Forecast exporters."""
from cashwatch.exporters.markdown import money, render_markdown

__all__ = ["money", "render_markdown"]
