"""
Recorder for explaining how a lookup was resolved.

The resolver writes one node per step into an Explainer when one is
present in the resolution context. Sections nest, so a lookup made from
inside a deferred default shows up under the step that triggered it.

Example rendering:

    Searching for 'c'
      Merge strategy: unique
      Source 'global': not found
      Source 'environment': found ['env_c']
      Source 'module': found ['module_c']
      Merged result: ['env_c', 'module_c']
"""

from __future__ import annotations

import contextlib as _contextlib
import dataclasses as _dataclasses
import typing as _typing


@_dataclasses.dataclass
class ExplainNode:
    """One recorded step and the steps nested beneath it."""

    label: str
    children: list[ExplainNode] = _dataclasses.field(default_factory=list)

    def lines(self, depth: int = 0) -> _typing.Iterator[str]:
        """Yield indented text lines for this node and its children."""
        yield "  " * depth + self.label
        for child in self.children:
            yield from child.lines(depth + 1)


class Explainer:
    """Collects ExplainNodes for one top-level lookup call."""

    def __init__(self) -> None:
        self._roots: list[ExplainNode] = []
        self._stack: list[ExplainNode] = []

    @property
    def roots(self) -> list[ExplainNode]:
        """Top-level nodes in recording order."""
        return list(self._roots)

    def note(self, label: str) -> ExplainNode:
        """Record a leaf step under the current section."""
        node = ExplainNode(label)
        if self._stack:
            self._stack[-1].children.append(node)
        else:
            self._roots.append(node)
        return node

    @_contextlib.contextmanager
    def section(self, label: str) -> _typing.Iterator[ExplainNode]:
        """Record a step whose nested notes belong to it."""
        node = self.note(label)
        self._stack.append(node)
        try:
            yield node
        finally:
            self._stack.pop()

    def render(self) -> str:
        """Render everything recorded as indented text."""
        return "\n".join(line for root in self._roots for line in root.lines())
