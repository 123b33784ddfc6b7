"""Output formatters for lists and rankings."""

from .json_out import JSONOutput
from .markdown import MarkdownOutput
from .terminal import TerminalOutput

__all__ = ["TerminalOutput", "MarkdownOutput", "JSONOutput"]
