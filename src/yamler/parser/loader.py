"""YAML loader with safety limits, built on ruamel.yaml's round-trip parser."""

from __future__ import annotations

import logging
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError
from ruamel.yaml.scalarbool import ScalarBoolean

from yamler.models.errors import ParseError, YAMLSafetyError

logger = logging.getLogger("yamler.parser")

# ---------------------------------------------------------------------------
# Safety limits
# ---------------------------------------------------------------------------

_MAX_DOCUMENT_SIZE = 5_000_000  # 5M characters
_MAX_NODE_COUNT = 200_000
_MAX_DEPTH = 64


class TrackedLoader:
    """Parse YAML text while keeping ruamel.yaml's per-node line/column info.

    :meth:`parse` returns the round-trip tree (``CommentedMap`` /
    ``CommentedSeq``), which the flattener needs for source positions.
    :func:`to_plain` turns that tree into plain Python data.
    """

    def __init__(
        self,
        max_document_size: int = _MAX_DOCUMENT_SIZE,
        max_depth: int = _MAX_DEPTH,
        max_node_count: int = _MAX_NODE_COUNT,
    ) -> None:
        self._yaml = YAML()
        self._yaml.preserve_quotes = True
        self._max_document_size = max_document_size
        self._max_depth = max_depth
        self._max_node_count = max_node_count

    # -- safety checks -------------------------------------------------------

    def _check_size(self, content: str) -> None:
        if len(content) > self._max_document_size:
            raise YAMLSafetyError(
                f"YAML document exceeds maximum size "
                f"({len(content):,} chars > {self._max_document_size:,} limit)"
            )

    def _check_shape(self, data: Any) -> None:
        """Post-parse: reject too many nodes or nesting too deep.

        Recursive aliases (``a: &a [*a]``) produce cyclic trees; they trip
        the depth limit instead of looping forever.
        """
        count = 0
        stack: list[tuple[Any, int]] = [(data, 0)]
        while stack:
            node, depth = stack.pop()
            count += 1
            if count > self._max_node_count:
                raise YAMLSafetyError(
                    f"YAML document exceeds maximum node count ({self._max_node_count:,})"
                )
            if depth > self._max_depth:
                raise YAMLSafetyError(
                    f"YAML document exceeds maximum nesting depth ({self._max_depth})"
                )
            if isinstance(node, dict):
                stack.extend((child, depth + 1) for child in node.values())
            elif isinstance(node, list):
                stack.extend((child, depth + 1) for child in node)

    # -- public loading API --------------------------------------------------

    def parse(self, content: str) -> Any:
        """Parse YAML text into ruamel.yaml's round-trip tree.

        Raises :class:`ParseError` for malformed input (including multiple
        documents in one stream) and :class:`YAMLSafetyError` for input over
        the configured limits.
        """
        self._check_size(content)
        try:
            data = self._yaml.load(content)
        except YAMLError as exc:
            logger.debug("YAML parse failed: %s", exc)
            raise ParseError() from exc
        self._check_shape(data)
        return data


def to_plain(data: Any) -> Any:
    """Convert ruamel.yaml round-trip types to plain Python values."""
    if isinstance(data, dict):
        return {str(k): to_plain(v) for k, v in data.items()}
    if isinstance(data, list):
        return [to_plain(item) for item in data]
    if isinstance(data, ScalarBoolean):
        return bool(data)
    if data is None or isinstance(data, bool):
        return data
    if isinstance(data, int):
        return int(data)
    if isinstance(data, float):
        return float(data)
    if isinstance(data, str):
        return str(data)
    return data
