import logging

from . import node
from . import iter
from . import avl

from .avl import AVLTree
from .node import AVLNode, VirtualNode, VIRTUAL_KEY
from .iter import TreeIter

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AVLTree",
    "AVLNode",
    "VirtualNode",
    "VIRTUAL_KEY",
    "TreeIter",
]
