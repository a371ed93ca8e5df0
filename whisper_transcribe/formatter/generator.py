"""
whisper_transcribe.formatter.generator - Jinja2-based document renderer.

Renders plain-text (Markdown) templates shipped in the templates directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined


class DocumentRenderer:
    """Jinja2 renderer for Markdown documents."""

    def __init__(self, template_dir: Path | None = None):
        if template_dir is None:
            template_dir = Path(__file__).parent / "templates"

        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=False,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def render(self, template_name: str, data: dict[str, Any]) -> str:
        """Render a template to a string.

        Args:
            template_name: Name of the template file
            data: Values injected into the template

        Returns:
            Rendered text
        """
        template = self.env.get_template(template_name)
        return template.render(**data)
