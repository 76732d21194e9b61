"""Flatten a YAML document into dotted-path leaf entries with line numbers."""

from __future__ import annotations

from typing import Any, Literal

from yamler.models.document import Entry, split_lines
from yamler.parser.loader import TrackedLoader, to_plain

LocatorName = Literal["scan", "source"]


class LineLocator:
    """Find the source line of a mapping key by scanning the text forward.

    Starting at the line inherited from the parent key, return the first line
    whose stripped content begins with ``"<key>:"``; if none does, the
    inherited line is kept.  The scan never rewinds above the parent, so keys
    are found in document order.  It can still land on the wrong line when
    the same key text appears earlier at a shallower level, or inside a
    value.
    """

    def __init__(self, text: str) -> None:
        self._lines = [line.strip() for line in split_lines(text)]

    def locate(self, node: Any, key: Any, offset: int) -> int:
        prefix = f"{key}:"
        for index in range(offset, len(self._lines)):
            if self._lines[index].startswith(prefix):
                return index
        return offset


class SourcePositionLocator(LineLocator):
    """Use the key positions ruamel.yaml records on each parsed mapping."""

    def locate(self, node: Any, key: Any, offset: int) -> int:
        try:
            line, _col = node.lc.key(key)
        except (AttributeError, KeyError, TypeError):
            return offset
        return line


_LOCATORS: dict[str, type[LineLocator]] = {
    "scan": LineLocator,
    "source": SourcePositionLocator,
}


class Flattener:
    """Depth-first walk over a parsed tree producing :class:`Entry` objects.

    Mappings recurse; sequences contribute one entry per element without
    descending into the elements; scalars and nulls under a key contribute
    one entry.  A null (or scalar) document root contributes nothing.
    """

    def __init__(self, loader: TrackedLoader | None = None, locator: LocatorName = "scan") -> None:
        if locator not in _LOCATORS:
            raise ValueError(f"Unknown line locator '{locator}'. Available: scan, source")
        self._loader = loader or TrackedLoader()
        self._locator_cls = _LOCATORS[locator]

    def flatten(self, text: str) -> list[Entry]:
        """Parse *text* and return its entries; raises ``ParseError`` on bad YAML."""
        data = self._loader.parse(text)
        return self.flatten_tree(data, text)

    def flatten_tree(self, data: Any, text: str) -> list[Entry]:
        """Flatten an already parsed round-trip tree whose source is *text*."""
        entries: list[Entry] = []
        self._walk(data, [], 0, self._locator_cls(text), entries)
        return entries

    def _walk(
        self,
        node: Any,
        path: list[str],
        offset: int,
        locator: LineLocator,
        out: list[Entry],
    ) -> None:
        if node is None:
            return
        if isinstance(node, dict):
            for key, value in node.items():
                name = str(key)
                line = locator.locate(node, key, offset)
                child_path = [*path, name]
                if isinstance(value, dict):
                    self._walk(value, child_path, line, locator, out)
                elif isinstance(value, list):
                    self._emit_items(value, child_path, line, out)
                else:
                    out.append(
                        Entry(
                            path=".".join(child_path),
                            value=to_plain(value),
                            line_number=line,
                            key=name,
                        )
                    )
        elif isinstance(node, list):
            self._emit_items(node, path, offset, out)

    @staticmethod
    def _emit_items(items: list[Any], path: list[str], line: int, out: list[Entry]) -> None:
        for index, item in enumerate(items):
            name = f"[{index}]"
            out.append(
                Entry(
                    path=".".join([*path, name]),
                    value=to_plain(item),
                    line_number=line,
                    key=name,
                )
            )


def flatten(text: str, locator: LocatorName = "scan") -> list[Entry]:
    """Parse YAML *text* and flatten it into ordered leaf entries."""
    return Flattener(locator=locator).flatten(text)
