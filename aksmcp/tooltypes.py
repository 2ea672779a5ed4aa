"""Tool descriptions, results and errors shared by the tool handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional


class ToolCategory(str, Enum):
    """Grouping of tools by the kind of resource they deal with."""

    CLUSTER = "cluster"
    NETWORK = "network"
    SECURITY = "security"
    GENERAL = "general"

    def __str__(self) -> str:
        return self.value


class ToolAccessLevel(str, Enum):
    """Access level a tool requires."""

    READ = "read"
    READWRITE = "readwrite"
    ADMIN = "admin"

    def __str__(self) -> str:
        return self.value


class ToolError(Exception):
    """Raised by a tool handler when a call cannot be completed."""


@dataclass(frozen=True)
class ToolParameter:
    """One named argument of a tool."""

    name: str
    description: str = ""
    required: bool = False
    type: str = "string"

    def to_schema(self) -> dict[str, Any]:
        """Return the JSON schema describing this parameter."""
        schema: dict[str, Any] = {"type": self.type}
        if self.description:
            schema["description"] = self.description
        return schema


@dataclass(frozen=True)
class Tool:
    """A tool as advertised to clients."""

    name: str
    description: str = ""
    parameters: tuple[ToolParameter, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Return the tool in the form used by the tools/list response."""
        input_schema: dict[str, Any] = {
            "type": "object",
            "properties": {p.name: p.to_schema() for p in self.parameters},
        }
        required = [p.name for p in self.parameters if p.required]
        if required:
            input_schema["required"] = required
        result: dict[str, Any] = {"name": self.name}
        if self.description:
            result["description"] = self.description
        result["inputSchema"] = input_schema
        return result


@dataclass
class ToolResult:
    """The outcome of a tool call: a list of content items."""

    content: list[dict[str, Any]] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def from_text(cls, text: str) -> "ToolResult":
        """Build a result holding a single text item."""
        return cls(content=[{"type": "text", "text": text}])

    @property
    def text(self) -> str:
        """The text of all text items, joined."""
        return "".join(
            item.get("text", "") for item in self.content if item.get("type") == "text"
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the result in the form used by the tools/call response."""
        result: dict[str, Any] = {"content": [dict(item) for item in self.content]}
        if self.is_error:
            result["isError"] = True
        return result


ToolHandler = Callable[[Optional[Mapping[str, Any]]], ToolResult]