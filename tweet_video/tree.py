from __future__ import annotations

from typing import Any, Generic, Mapping, TypeVar

C = TypeVar("C")


class JsonVisitor(Generic[C]):
    """
    Pre-order, depth-first walk over a parsed JSON document.

    Mappings are handed to `visit_object` and then descended in key order;
    lists and tuples are descended in index order; scalars are leaves.
    `visit_object` returns the context passed down to the node's children,
    which lets a visitor carry ancestor state without recursion.

    The walk uses an explicit stack, so nesting depth is bounded only by memory.
    """

    def visit_object(self, node: Mapping[str, Any], context: C) -> C:
        return context

    def walk(self, root: Any, context: C) -> None:
        stack: list[tuple[Any, C]] = [(root, context)]

        while stack:
            node, ctx = stack.pop()

            if isinstance(node, Mapping):
                ctx = self.visit_object(node, ctx)
                children = list(node.values())
            elif isinstance(node, (list, tuple)):
                children = list(node)
            else:
                continue

            for child in reversed(children):
                if isinstance(child, (Mapping, list, tuple)):
                    stack.append((child, ctx))
