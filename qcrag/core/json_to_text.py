"""
Flatten nested JSON into `dot.path: value` lines for embedding.
"""

from typing import Any, List


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def _scalar_text(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _type_name(value: Any) -> str:
    return "object" if isinstance(value, (dict, list)) else type(value).__name__


def json_to_text(value: Any, max_array_items: int = 5) -> str:
    """
    Render a JSON value as readable key/value lines.

    Nested objects become dot paths. Arrays get a one-line preview of their
    first max_array_items elements, and object elements are expanded under
    their index. Empty objects and arrays produce nothing. Duplicate lines
    are dropped, keeping first occurrence order.
    """
    lines: List[str] = []

    def visit(node: Any, path: List[str]) -> None:
        if _is_scalar(node):
            lines.append(f"{'.'.join(path)}: {_scalar_text(node)}")
            return

        if isinstance(node, list):
            items = node[:max_array_items]
            if items:
                preview = ", ".join(_scalar_text(v) if _is_scalar(v) else _type_name(v) for v in items)
                lines.append(f"{'.'.join(path)}[0..{len(items) - 1}]: {preview}")
            for index, item in enumerate(items):
                if isinstance(item, (dict, list)):
                    visit(item, path + [str(index)])
            return

        if isinstance(node, dict):
            for key, child in node.items():
                visit(child, path + [str(key)])

    visit(value, [])
    return "\n".join(dict.fromkeys(lines))
