from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Any, Iterator, List, Optional, Tuple

import numpy as np

from .iter import ListHead, TreeIter
from .node import AVLNode

logger = logging.getLogger(__name__)


def _check_key(key) -> int:
    if not isinstance(key, (int, np.integer)):
        raise TypeError(
            "insert(): key must be an int, got {}".format(type(key).__name__)
        )
    return int(key)


class AVLTree(MutableMapping):
    """Height-balanced search tree over distinct integer keys.

    Every node carries its subtree's height, size and key sum, which lets
    `select` (i-th smallest key) and `less` (sum of keys <= x) run in
    logarithmic time. Mutating operations return the number of rotations they
    performed, or -1 when there was nothing to do (duplicate insert, missing
    delete).
    """

    # modes for _balance
    INSERT = 1
    DELETE = 2

    def __init__(self):
        self._root: Optional[AVLNode] = None
        self._min: Optional[AVLNode] = None
        self._max: Optional[AVLNode] = None
        self._head = ListHead()

    def empty(self) -> bool:
        return self._root is None

    def size(self) -> int:
        if self._root is None:
            return 0
        return self._root.size

    def get_root(self) -> Optional[AVLNode]:
        """The root node, for inspection only. None if the tree is empty."""
        return self._root

    def get_node(self, key: int) -> Optional[AVLNode]:
        if self._root is None:
            return None
        return self._root._find_node(key)

    def search(self, key: int) -> Any:
        """Value stored under `key`, or None if the key is not present."""
        node = self.get_node(key)
        if node is None:
            return None
        return node.value

    def insert(self, key: int, value: Any) -> int:
        """Insert `key` with `value`.

        Returns the number of rotations needed to rebalance (0, 1 or 2), or
        -1 without modifying the tree if `key` is already present.
        """
        key = _check_key(key)

        if self._root is None:
            self._root = AVLNode(key, value, self, None, self._head, self._head)
            self._update_min()
            self._update_max()
            return 0

        # Find where the new node should be inserted, tracking its in-order
        # neighbours along the way.
        ptr = self._root
        parent = None
        right_child = False
        prev = next = self._head
        while ptr.is_real:
            if key == ptr.key:
                return -1

            parent = ptr
            if key > ptr.key:
                prev = ptr
                ptr = ptr._right
                right_child = True
            else:
                next = ptr
                ptr = ptr._left
                right_child = False

        self._put(parent, right_child, key, value, prev, next)

        rotations = self._balance(parent, AVLTree.INSERT)
        if rotations > 0:
            logger.debug("insert(%d): %d rotation(s)", key, rotations)

        self._update_min()
        self._update_max()
        return rotations

    def _put(
        self,
        parent: AVLNode,
        right_child: bool,
        key: int,
        value: Any,
        prev,
        next,
    ):
        node = AVLNode(key, value, self, parent, prev, next)
        if right_child:
            parent._set_right_child(node)
        else:
            parent._set_left_child(node)

        self._update_sizes_upward(parent)

    def delete(self, key: int) -> int:
        """Delete `key` from the tree.

        Returns the total number of rotations performed while rebalancing,
        or -1 if `key` is not present.
        """
        if self._root is None:
            return -1

        node = self._root._find_node(key)
        if node is None:
            return -1

        if node is self._root and node.is_leaf():
            logger.debug("delete(%d): removed last node", key)
            node._unlink()
            self._root = None
            self._update_min()
            self._update_max()
            return 0

        # A node with two children trades places with its successor, which
        # has at most one real child and is the node actually removed.
        if node.has_two_children():
            successor = node.find_successor()
            node._swap_data(successor)
            node = successor

        if node is self._root:
            child = node.child()
            node._unlink()
            child._parent = None
            self._root = child
            self._update_min()
            self._update_max()
            return 0

        parent = node._parent
        child = node.child()
        if node._is_right_child():
            parent._set_right_child(child)
        else:
            parent._set_left_child(child)
        node._unlink()
        self._update_sizes_upward(parent)

        rotations = self._balance(parent, AVLTree.DELETE)
        if rotations > 0:
            logger.debug("delete(%d): %d rotation(s)", key, rotations)

        self._update_min()
        self._update_max()
        return rotations

    def _balance(self, node: Optional[AVLNode], mode: int) -> int:
        """Walk up from `node`, fixing heights and rotating where needed.

        The walk stops as soon as a node's height is unchanged. In INSERT mode
        it also stops after the first rotation; in DELETE mode it carries on
        from the rotated node's former parent.
        """
        rotations = 0

        while node is not None:
            bf = node.balance_factor()
            new_height = node.calculate_height()

            if abs(bf) < 2:
                if new_height == node.height:
                    return rotations
                node.height = new_height
                node = node._parent
                continue

            node.height = new_height
            parent = node._parent
            rotations += node._rebalance()

            if mode == AVLTree.INSERT:
                return rotations
            node = parent

        return rotations

    def _update_sizes_upward(self, node: Optional[AVLNode]):
        while node is not None:
            node.size = node.calculate_size()
            node.key_sum = node.calculate_key_sum()
            node = node._parent

    def _update_min(self):
        if self._root is None:
            self._min = None
            return

        ptr = self._root
        while ptr._left.is_real:
            ptr = ptr._left
        self._min = ptr

    def _update_max(self):
        if self._root is None:
            self._max = None
            return

        ptr = self._root
        while ptr._right.is_real:
            ptr = ptr._right
        self._max = ptr

    def min(self) -> Any:
        """Value of the smallest key, or None if the tree is empty."""
        if self._min is None:
            return None
        return self._min.value

    def max(self) -> Any:
        """Value of the largest key, or None if the tree is empty."""
        if self._max is None:
            return None
        return self._max.value

    def keys_to_array(self) -> np.ndarray:
        """Keys in ascending order.

        int64 when the extreme keys fit, otherwise an object array of Python
        ints.
        """
        dtype = np.int64
        if self._root is not None:
            info = np.iinfo(np.int64)
            if self._min.key < info.min or self._max.key > info.max:
                dtype = object
        out = np.empty(self.size(), dtype=dtype)
        if self._root is not None:
            self._root._fill(out, 0, "key")
        return out

    def values_to_array(self) -> List[Any]:
        out = [None] * self.size()
        if self._root is not None:
            self._root._fill(out, 0, "value")
        return out

    def select(self, rank: int) -> Any:
        """Value of the `rank`-th smallest key (1-indexed).

        Returns None if the tree is empty, `rank` is not an integer, or it lies
        outside [1, size()].
        """
        if not isinstance(rank, (int, np.integer)):
            return None
        if self._root is None or rank < 1 or rank > self.size():
            return None

        # Climb from the minimum to the lowest ancestor holding `rank` nodes,
        # then descend from there.
        ptr = self._min
        while ptr.size < rank:
            ptr = ptr._parent

        return ptr._select(rank).value

    def rank(self, key: int) -> Optional[int]:
        """1-indexed position of `key` among all keys, or None if absent."""
        ptr = self._root
        r = 0
        while ptr is not None and ptr.is_real:
            if key < ptr.key:
                ptr = ptr._left
            else:
                r += ptr._left.size + 1
                if key == ptr.key:
                    return r
                ptr = ptr._right
        return None

    def less(self, threshold: int) -> int:
        """Sum of all keys <= `threshold`; `threshold` need not be present."""
        if self._root is None:
            return 0

        total = self._root.key_sum
        ptr = self._root
        while ptr.is_real and ptr.key != threshold:
            # going right keeps everything counted so far
            if threshold > ptr.key:
                ptr = ptr._right
            # going left drops this node and its right subtree
            else:
                total -= ptr._right.key_sum + ptr.key
                ptr = ptr._left

        # stopped on the threshold itself: only its right subtree is too large
        if ptr.is_real:
            total -= ptr._right.key_sum

        return total

    def _nearest(self, bound, above: bool) -> Optional[AVLNode]:
        """Node holding `bound`, else the closest key above it (`above`) or
        below it. None if every key lies on the wrong side."""
        best = None
        ptr = self._root
        while ptr is not None and ptr.is_real:
            if bound == ptr.key:
                return ptr
            if (bound < ptr.key) == above:
                best = ptr
                ptr = ptr._left if above else ptr._right
            else:
                ptr = ptr._right if above else ptr._left
        return best

    def lower_bound(self, bound: int) -> Optional[Tuple[int, Any]]:
        """(key, value) of the smallest key >= `bound`, if any."""
        node = self._nearest(bound, True)
        return None if node is None else (node.key, node.value)

    def upper_bound(self, bound: int) -> Optional[Tuple[int, Any]]:
        """(key, value) of the largest key <= `bound`, if any."""
        node = self._nearest(bound, False)
        return None if node is None else (node.key, node.value)

    def _do_iter(
        self,
        mode: int,
        left_bound: Optional[int] = None,
        right_bound: Optional[int] = None,
        reverse: bool = False,
    ) -> TreeIter:
        if None not in (left_bound, right_bound) and left_bound > right_bound:
            left_bound, right_bound = right_bound, left_bound

        first = self._head._next if left_bound is None else self._nearest(left_bound, True)
        last = self._head._prev if right_bound is None else self._nearest(right_bound, False)
        return TreeIter(mode, first, last, reverse)

    def items(
        self,
        left_bound: Optional[int] = None,
        right_bound: Optional[int] = None,
        reverse: bool = False,
    ) -> Iterator[Tuple[int, Any]]:
        return self._do_iter(TreeIter.ITEMS, left_bound, right_bound, reverse)

    def keys(
        self,
        left_bound: Optional[int] = None,
        right_bound: Optional[int] = None,
        reverse: bool = False,
    ) -> Iterator[int]:
        return self._do_iter(TreeIter.KEYS, left_bound, right_bound, reverse)

    def values(
        self,
        left_bound: Optional[int] = None,
        right_bound: Optional[int] = None,
        reverse: bool = False,
    ) -> Iterator[Any]:
        return self._do_iter(TreeIter.VALS, left_bound, right_bound, reverse)

    def nodes(
        self,
        start_node: AVLNode,
        end_node: AVLNode,
        reverse: bool = False,
    ) -> Iterator[AVLNode]:
        return TreeIter(TreeIter.NODES, start_node, end_node, reverse)

    def print(self) -> str:
        if self._root is not None:
            return self._root._print_recursive(0)
        else:
            return "<empty tree>"

    def __getitem__(self, key: int) -> Any:
        node = self.get_node(key)
        if node is None:
            raise KeyError(key)
        return node.value

    def __setitem__(self, key: int, value: Any):
        node = self.get_node(key)
        if node is not None:
            node.value = value
        else:
            self.insert(key, value)

    def __delitem__(self, key: int):
        if self.delete(key) == -1:
            raise KeyError(key)

    def __contains__(self, key) -> bool:
        return self.get_node(key) is not None

    def __iter__(self) -> Iterator[int]:
        return self.keys()

    def __reversed__(self) -> Iterator[int]:
        return self.keys(reverse=True)

    def __len__(self) -> int:
        return self.size()
