"""Grouping of consecutive list lines into numbering instances.

WHY: Word restarts visible list numbering only when paragraphs point at
a different numbering instance. Two ordered lists separated by a
paragraph must therefore carry different instance ids, while items of
one run must share theirs.

HOW: ListGrouper keeps at most one open ListGroup. add() appends to the
open group when the kind matches; otherwise it closes the open group and
opens a new one with the next instance id. close() flushes the open
group as ListItem blocks keyed by their source line index.

RULES:
- Instance ids are per document, start at 1, and only increase
- A line of the other kind closes the open group before opening a new one
- Ordered items use "base-numbering", bulleted items "bullet-points"
- The literal number written in "N. text" is ignored; renderers count
- allocate_instance() hands out ids for other numbered runs (bibliography)
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from docx_export.core.ir import ListGroup, ListItem, ListKind


class ListGrouper:

    def __init__(self) -> None:
        self._next_instance = 1
        self._open: Optional[ListGroup] = None

    @property
    def open_kind(self) -> Optional[ListKind]:
        return self._open.kind if self._open is not None else None

    def allocate_instance(self) -> int:
        instance_id = self._next_instance
        self._next_instance += 1
        return instance_id

    def add(
        self,
        kind: ListKind,
        text: str,
        line_index: int,
        citation_index: Optional[int] = None,
    ) -> List[Tuple[int, ListItem]]:
        """Add one list line, returning blocks of a group it closed (if any).

        Args:
            kind: ORDERED or BULLETED.
            text: Item text with the list marker removed.
            line_index: Source line index of the item.
            citation_index: Citation referenced by the item, if any.

        Returns:
            (line_index, ListItem) pairs of the group closed by a kind
            change, or an empty list.
        """
        flushed: List[Tuple[int, ListItem]] = []
        if self._open is not None and self._open.kind is not kind:
            flushed = self.close()
        if self._open is None:
            self._open = ListGroup(
                kind=kind,
                instance_id=self.allocate_instance(),
            )
        self._open.items.append(text)
        self._open.line_indices.append(line_index)
        self._open.citation_indices.append(citation_index)
        return flushed

    def close(self) -> List[Tuple[int, ListItem]]:
        """Finalize the open group and return its items in source order."""
        group = self._open
        if group is None:
            return []
        self._open = None

        blocks: List[Tuple[int, ListItem]] = []
        for text, line_index, citation_index in zip(
            group.items, group.line_indices, group.citation_indices
        ):
            blocks.append((line_index, ListItem(
                text=text,
                numbering_reference=group.kind.numbering_reference,
                instance_id=group.instance_id,
                citation_index=citation_index,
            )))
        return blocks
