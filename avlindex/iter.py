from __future__ import annotations

from typing import Union

from . import node


class ListHead(object):
    """Ring head of the in-order thread running through a tree's nodes.

    `_next` is the minimum node and `_prev` the maximum; both point back at
    the head itself when the tree is empty.
    """

    def __init__(self):
        self._prev = self
        self._next = self


class TreeIter(object):
    KEYS = 0
    VALS = 1
    ITEMS = 2
    NODES = 3

    def __init__(
        self,
        mode: int,
        lower: Union[ListHead, node.AVLNode],
        upper: Union[ListHead, node.AVLNode],
        rev: bool,
    ):
        self._rev: bool = rev
        self._mode: int = mode
        self._cur: Union[None, ListHead, node.AVLNode] = None
        self._end: Union[None, ListHead, node.AVLNode] = None

        # An empty range shows up as bounds that crossed over each other.
        if isinstance(lower, node.AVLNode) and isinstance(upper, node.AVLNode):
            if lower.key <= upper.key:
                self._cur, self._end = (upper, lower) if rev else (lower, upper)

    def __iter__(self) -> TreeIter:
        return self

    def __reversed__(self) -> TreeIter:
        if self._cur is None:
            return TreeIter(self._mode, ListHead(), ListHead(), not self._rev)
        if self._rev:
            return TreeIter(self._mode, self._end, self._cur, False)
        return TreeIter(self._mode, self._cur, self._end, True)

    def _emit(self, cur: node.AVLNode):
        if self._mode == TreeIter.KEYS:
            return cur.key
        elif self._mode == TreeIter.VALS:
            return cur.value
        elif self._mode == TreeIter.ITEMS:
            return (cur.key, cur.value)
        return cur

    def __next__(self):
        if self._cur is None:
            raise StopIteration()

        cur = self._cur
        if cur is self._end:
            self._cur = None
            self._end = None
        elif self._rev:
            self._cur = cur._prev
        else:
            self._cur = cur._next

        return self._emit(cur)
