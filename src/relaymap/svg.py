"""Minimal SVG document builder with central escaping."""

from __future__ import annotations

from html import escape
from typing import Mapping

SVG_NAMESPACE = "http://www.w3.org/2000/svg"

Attributes = Mapping[str, "str | int | float"]


def fmt(value: float, digits: int = 1) -> str:
    return f"{value:.{digits}f}"


def _format_attrs(attrs: Attributes) -> str:
    return "".join(f" {name}='{escape(str(value), quote=True)}'" for name, value in attrs.items())


class SvgDocument:
    """Append-only SVG text buffer.

    Attribute values and text content are escaped here, never by callers.
    Attributes are written in mapping order so output is reproducible.
    """

    INDENT = "  "

    def __init__(self, width: int, height: int, *, title: str, description: str) -> None:
        self._lines: list[str] = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            f'<svg xmlns="{SVG_NAMESPACE}" width="{width}" height="{height}" '
            f'viewBox="0 0 {width} {height}">',
        ]
        self._depth = 1
        self._closed = False
        self.text_element("title", title)
        self.text_element("desc", description)

    def element(self, tag: str, attrs: Attributes) -> None:
        self._append(f"<{tag}{_format_attrs(attrs)}/>")

    def text_element(self, tag: str, text: str, attrs: Attributes | None = None) -> None:
        self._append(f"<{tag}{_format_attrs(attrs or {})}>{escape(text, quote=False)}</{tag}>")

    def open_group(self, attrs: Attributes) -> None:
        self._append(f"<g{_format_attrs(attrs)}>")
        self._depth += 1

    def close_group(self) -> None:
        if self._depth <= 1:
            raise RuntimeError("No open group to close")
        self._depth -= 1
        self._append("</g>")

    def to_string(self) -> str:
        if self._depth != 1:
            raise RuntimeError(f"{self._depth - 1} group(s) left open")
        if not self._closed:
            self._lines.append("</svg>")
            self._closed = True
        return "\n".join(self._lines) + "\n"

    def _append(self, line: str) -> None:
        if self._closed:
            raise RuntimeError("SVG document already finalized")
        self._lines.append(self.INDENT * self._depth + line)
