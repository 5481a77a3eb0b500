"""Renderers for compiled semantic documents."""

from .html import node_to_element, render_html, render_untagged_notice

__all__ = ["node_to_element", "render_html", "render_untagged_notice"]
