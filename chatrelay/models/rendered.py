"""
Styled rich-text output of the template renderer.

A RenderedMessage is an ordered list of runs. Plain runs carry text only;
tag runs may carry a tooltip and a click-to-suggest command. Colour codes
("&e", "&r" ...) stay in the text for the host to translate.
"""

import re
from dataclasses import dataclass
from typing import Any

COLOR_CODE_PATTERN = re.compile(r"&[0-9a-fk-or]", re.IGNORECASE)


def strip_color_codes(text: str) -> str:
    """Remove legacy '&x' colour and format codes."""
    return COLOR_CODE_PATTERN.sub("", text)


@dataclass(frozen=True)
class TextRun:
    """One styled run of text."""

    text: str
    hover: str | None = None
    suggest_command: str | None = None

    @property
    def interactive(self) -> bool:
        return self.hover is not None or self.suggest_command is not None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"text": self.text}
        if self.hover is not None:
            result["hover"] = self.hover
        if self.suggest_command is not None:
            result["suggest_command"] = self.suggest_command
        return result


@dataclass(frozen=True)
class RenderedMessage:
    """An ordered sequence of text runs."""

    runs: tuple[TextRun, ...] = ()

    @classmethod
    def plain(cls, text: str) -> "RenderedMessage":
        """Build a single-run system message."""
        return cls((TextRun(text),)) if text else cls()

    @property
    def text(self) -> str:
        """Concatenated text of every run, colour codes included."""
        return "".join(run.text for run in self.runs)

    @property
    def plain_text(self) -> str:
        """Concatenated text with colour codes removed."""
        return strip_color_codes(self.text)

    def to_dict(self) -> dict[str, Any]:
        return {"runs": [run.to_dict() for run in self.runs]}
