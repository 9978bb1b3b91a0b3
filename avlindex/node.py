from __future__ import annotations

import logging
from typing import Any, Optional, Union

from . import iter as tree_iter

logger = logging.getLogger(__name__)

# Key carried by virtual (placeholder) children; never a legal real key.
VIRTUAL_KEY = None


class VirtualNode(object):
    """Placeholder occupying an empty child slot of a real node.

    Every real node owns exactly two children; a missing child is represented
    by one of these, which behaves as an empty subtree (height -1, size 0,
    key sum 0).
    """

    is_real = False

    def __init__(self, parent: Optional[AVLNode] = None):
        self.key = VIRTUAL_KEY
        self.value = None
        self.height: int = -1
        self.size: int = 0
        self.key_sum: int = 0
        self._parent: Optional[AVLNode] = parent
        self._left = None
        self._right = None

    @property
    def parent(self) -> Optional[AVLNode]:
        return self._parent

    def balance_factor(self) -> int:
        return 0

    def __repr__(self) -> str:
        return "VirtualNode()"


Child = Union["AVLNode", VirtualNode]


class AVLNode(object):
    is_real = True

    def __init__(
        self,
        key: int,
        value: Any,
        tree,
        parent: Optional[AVLNode],
        prev: Union[tree_iter.ListHead, AVLNode],
        next: Union[tree_iter.ListHead, AVLNode],
    ):
        self.key: int = key
        self.value: Any = value

        self.height: int = 0
        self.size: int = 1
        self.key_sum: int = key

        self._parent: Optional[AVLNode] = parent
        self._left: Child = VirtualNode(self)
        self._right: Child = VirtualNode(self)
        self._prev: Union[None, tree_iter.ListHead, AVLNode] = prev
        self._next: Union[None, tree_iter.ListHead, AVLNode] = next
        self._tree = tree

        prev._next = self
        next._prev = self

    @property
    def left(self) -> Child:
        return self._left

    @property
    def right(self) -> Child:
        return self._right

    @property
    def parent(self) -> Optional[AVLNode]:
        return self._parent

    @property
    def prev(self) -> Optional[AVLNode]:
        """This node's in-order predecessor, if any."""
        ret = self._prev
        if isinstance(ret, AVLNode):
            return ret

    @property
    def next(self) -> Optional[AVLNode]:
        """This node's in-order successor, if any."""
        ret = self._next
        if isinstance(ret, AVLNode):
            return ret

    # derived fields, always computed from the children's stored values

    def balance_factor(self) -> int:
        return self._left.height - self._right.height

    def calculate_height(self) -> int:
        return max(self._left.height, self._right.height) + 1

    def calculate_size(self) -> int:
        return self._left.size + self._right.size + 1

    def calculate_key_sum(self) -> int:
        return self.key + self._left.key_sum + self._right.key_sum

    def _refresh(self):
        self.height = self.calculate_height()
        self.size = self.calculate_size()
        self.key_sum = self.calculate_key_sum()

    # structural queries

    def is_leaf(self) -> bool:
        return not self._left.is_real and not self._right.is_real

    def has_two_children(self) -> bool:
        return self._left.is_real and self._right.is_real

    def child(self) -> Child:
        """The real child of a node with at most one; a virtual child if it
        has none."""
        if self._right.is_real:
            return self._right
        return self._left

    def find_successor(self) -> AVLNode:
        """Leftmost real node of the right subtree.

        Only meaningful when the right child is real.
        """
        ptr = self._right
        while ptr._left.is_real:
            ptr = ptr._left
        return ptr

    def _set_left_child(self, child: Child):
        self._left = child
        child._parent = self

    def _set_right_child(self, child: Child):
        self._right = child
        child._parent = self

    def _is_left_child(self) -> bool:
        return (self._parent is not None) and (self._parent._left is self)

    def _is_right_child(self) -> bool:
        return (self._parent is not None) and (self._parent._right is self)

    def _swap_data(self, other: AVLNode):
        self.key, other.key = other.key, self.key
        self.value, other.value = other.value, self.value

    def _find_node(self, key: int) -> Optional[AVLNode]:
        ptr: Child = self
        while ptr.is_real:
            if key == ptr.key:
                return ptr
            elif key > ptr.key:
                ptr = ptr._right
            else:
                ptr = ptr._left
        return None

    # rotations

    def _rotate(self):
        """Rotate this node up into its parent's position.

        A left child triggers a right rotation of the parent, a right child a
        left rotation. The parent's fields are recomputed before this node's,
        since this node now sits above it.
        """
        parent: AVLNode = self._parent
        gp: Optional[AVLNode] = parent._parent
        parent_was_left = parent._is_left_child()

        if self._is_left_child():
            # Right rotation:
            parent._set_left_child(self._right)
            self._set_right_child(parent)
        else:
            # Left rotation:
            parent._set_right_child(self._left)
            self._set_left_child(parent)

        if gp is not None:
            if parent_was_left:
                gp._set_left_child(self)
            else:
                gp._set_right_child(self)
        else:
            self._parent = None
            self._tree._root = self

        parent._refresh()
        self._refresh()

    def _rebalance(self) -> int:
        """Restore balance at a node whose balance factor is +-2.

        Returns the number of rotations performed: 1 for LL/RR, 2 for LR/RL.
        """
        bf = self.balance_factor()
        assert abs(bf) == 2, "rebalance called on node {} with bf {}".format(
            self.key, bf
        )

        if bf == 2:
            child = self._left
            if child.balance_factor() >= 0:
                logger.debug("LL rotation at key %s (bf=%d)", self.key, bf)
                child._rotate()
                return 1
            logger.debug("LR rotation at key %s (bf=%d)", self.key, bf)
            pivot = child._right
        else:
            child = self._right
            if child.balance_factor() <= 0:
                logger.debug("RR rotation at key %s (bf=%d)", self.key, bf)
                child._rotate()
                return 1
            logger.debug("RL rotation at key %s (bf=%d)", self.key, bf)
            pivot = child._left

        pivot._rotate()
        pivot._rotate()
        return 2

    # traversal helpers

    def _select(self, rank: int) -> AVLNode:
        r = self._left.size + 1
        if rank == r:
            return self
        if rank < r:
            return self._left._select(rank)
        return self._right._select(rank - r)

    def _fill(self, out, offset: int, attr: str):
        # Writes this subtree's in-order `attr` values into out[offset:].
        left = self._left
        if left.is_real:
            left._fill(out, offset, attr)
        out[offset + left.size] = getattr(self, attr)
        if self._right.is_real:
            self._right._fill(out, offset + left.size + 1, attr)

    def _unlink(self):
        self._prev._next = self._next
        self._next._prev = self._prev

        self._tree = None
        self._parent = None
        self._left = None
        self._right = None
        self._prev = None
        self._next = None

    def _print_recursive(self, level: int) -> str:
        ret = ""
        if self._left.is_real:
            ret = self._left._print_recursive(level + 1)

        ret += ("    " * level) + self._print_node() + "\n"

        if self._right.is_real:
            ret += self._right._print_recursive(level + 1)

        return ret

    def _print_node(self) -> str:
        return "{} (h={}, n={}, sum={})".format(
            self.key, self.height, self.size, self.key_sum
        )

    def __str__(self) -> str:
        return "AVLNode({}, {!r})".format(self.key, self.value)

    def __repr__(self) -> str:
        return self.__str__()
