"""Exception taxonomy for page, section, and layout rendering.

Only :class:`TemplateNotFound` changes which template is rendered; every
other error is contained where it is detected and turned into a log record
(and, outside production, an HTML comment).
"""

from __future__ import annotations

import html


class RenderError(Exception):
    """Base class for rendering failures."""

    kind = "render_error"

    def diagnostic(self) -> str:
        """Return the error as an HTML comment with escaped message text."""
        text = html.escape(str(self), quote=False).replace("--", "- -")
        return f"<!-- {text} -->"


class TemplateNotFound(RenderError):
    """Raised when neither a JSON nor a markup template exists for a name."""

    kind = "template_not_found"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Template '{name}' not found")


class SchemaParseError(RenderError):
    """Describe a ``{% schema %}`` block whose body is not valid JSON."""

    kind = "schema_parse_error"

    def __init__(self, section_type: str, sample: str, reason: str) -> None:
        self.section_type = section_type
        self.sample = sample
        self.reason = reason
        super().__init__(f"Invalid schema in section '{section_type}': {reason}")


class SectionSourceMissing(RenderError):
    """Raised when ``sections/<type>`` has no source file."""

    kind = "section_source_missing"

    def __init__(self, section_type: str) -> None:
        self.section_type = section_type
        super().__init__(f"Section '{section_type}' not found")


class SectionExecutionError(RenderError):
    """Wrap an exception raised while executing a section template."""

    kind = "section_execution_error"

    def __init__(self, section_type: str, reason: str) -> None:
        self.section_type = section_type
        self.reason = reason
        super().__init__(f"Error rendering section '{section_type}': {reason}")


class RecursionLimitExceeded(RenderError):
    """Raised when nested renders exceed the configured depth."""

    kind = "recursion_limit_exceeded"

    def __init__(self, limit: int, label: str = "") -> None:
        self.limit = limit
        self.label = label
        super().__init__(f"Maximum template rendering depth ({limit}) exceeded")

    def diagnostic(self) -> str:
        """Return the fixed depth-exceeded comment."""
        return f"<!-- Maximum template rendering depth ({self.limit}) exceeded -->"


class LayoutSubstitutionFault(RenderError):
    """Describe a layout whose content slots were left unsubstituted."""

    kind = "layout_substitution_fault"

    def __init__(self, layout: str, slots: list[str]) -> None:
        self.layout = layout
        self.slots = slots
        joined = ", ".join(slots)
        super().__init__(f"Layout '{layout}' left slots unsubstituted: {joined}")


__all__ = [
    "LayoutSubstitutionFault",
    "RecursionLimitExceeded",
    "RenderError",
    "SchemaParseError",
    "SectionExecutionError",
    "SectionSourceMissing",
    "TemplateNotFound",
]
