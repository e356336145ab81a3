"""
Tool Catalog — ordered, name-unique registry of tool descriptors.

Built once at startup from static tool groups, read-only afterwards.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List, Optional

from .errors import DuplicateToolError, UnknownToolError

# async handler(ctx, arguments) -> JSON-serializable value
ToolHandler = Callable[[Any, Dict[str, Any]], Awaitable[Any]]


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    input_schema: Dict[str, Any]
    handler: ToolHandler = field(compare=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape for tools/list."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class ToolCatalog:
    """Name → ToolDescriptor mapping that preserves registration order."""

    def __init__(self, groups: Iterable[Iterable[ToolDescriptor]] = ()):
        self._tools: Dict[str, ToolDescriptor] = {}
        for group in groups:
            self.register(group)

    def register(self, group: Iterable[ToolDescriptor]):
        """
        Add a group of tools.

        Raises DuplicateToolError if any name is already registered (or
        repeated within the group). Nothing from the group is added in
        that case.
        """
        group = list(group)
        seen = set()
        for tool in group:
            if tool.name in self._tools or tool.name in seen:
                raise DuplicateToolError(tool.name)
            seen.add(tool.name)
        for tool in group:
            self._tools[tool.name] = tool

    def lookup(self, name: str) -> ToolDescriptor:
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        return tool

    def get(self, name: str) -> Optional[ToolDescriptor]:
        return self._tools.get(name)

    def list(self) -> List[ToolDescriptor]:
        return list(self._tools.values())

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)
