"""Terminal output for MCP Doctor."""

from .reporter import Reporter, render_to_text

__all__ = ["Reporter", "render_to_text"]
