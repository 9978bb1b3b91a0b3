import logging

import numpy as np
import pytest

from avlindex import AVLTree, VirtualNode


@pytest.fixture
def sample_tree():
    tree = AVLTree()
    for k in [5, 3, 8, 1, 4, 7, 9]:
        assert tree.insert(k, "v{}".format(k)) == 0
    return tree


def build(keys):
    tree = AVLTree()
    for k in keys:
        tree.insert(k, "v{}".format(k))
    return tree


def test_empty_tree():
    tree = AVLTree()

    assert tree.empty()
    assert tree.size() == 0
    assert len(tree) == 0
    assert tree.get_root() is None
    assert tree.search(1) is None
    assert tree.min() is None
    assert tree.max() is None
    assert tree.select(1) is None
    assert tree.rank(1) is None
    assert tree.less(100) == 0
    assert tree.delete(1) == -1
    assert tree.keys_to_array().shape == (0,)
    assert tree.values_to_array() == []
    assert list(tree.items()) == []
    assert tree.lower_bound(0) is None
    assert tree.upper_bound(0) is None
    assert tree.print() == "<empty tree>"


def test_sample_tree(sample_tree):
    assert list(sample_tree.keys_to_array()) == [1, 3, 4, 5, 7, 8, 9]
    assert sample_tree.keys_to_array().dtype == np.int64
    assert sample_tree.values_to_array() == ["v1", "v3", "v4", "v5", "v7", "v8", "v9"]
    assert sample_tree.min() == "v1"
    assert sample_tree.max() == "v9"
    assert sample_tree.less(6) == 13
    assert sample_tree.select(4) == "v5"
    assert sample_tree.size() == 7
    assert sample_tree.get_root().key == 5
    assert sample_tree.get_root().key_sum == 37


def test_sample_tree_delete(sample_tree):
    assert sample_tree.delete(8) >= 0
    assert list(sample_tree.keys_to_array()) == [1, 3, 4, 5, 7, 9]
    assert sample_tree.search(9) == "v9"
    assert sample_tree.search(8) is None
    assert sample_tree.max() == "v9"


def test_sample_tree_duplicate(sample_tree):
    assert sample_tree.insert(5, "x") == -1
    assert list(sample_tree.keys_to_array()) == [1, 3, 4, 5, 7, 8, 9]
    assert sample_tree.search(5) == "v5"


@pytest.mark.parametrize(
    "threshold,expected",
    [
        (0, 0),
        (1, 1),
        (2, 1),
        (3, 4),
        (5, 13),
        (7, 20),
        (8, 28),
        (9, 37),
        (100, 37),
        (-100, 0),
    ],
)
def test_less_thresholds(sample_tree, threshold, expected):
    assert sample_tree.less(threshold) == expected


def test_less_negative_keys():
    tree = build([-1, -5, 2, 0, -3])
    assert tree.search(-1) == "v-1"
    assert tree.less(-1) == -9
    assert tree.less(-2) == -8
    assert tree.less(10) == -7


@pytest.mark.parametrize(
    "keys,root",
    [([1, 2, 3], 2), ([3, 2, 1], 2)],
)
def test_insert_single_rotation(keys, root):
    tree = AVLTree()
    assert tree.insert(keys[0], None) == 0
    assert tree.insert(keys[1], None) == 0
    assert tree.insert(keys[2], None) == 1
    assert tree.get_root().key == root
    assert tree.get_root().height == 1


@pytest.mark.parametrize(
    "keys",
    [[3, 1, 2], [1, 3, 2]],
)
def test_insert_double_rotation(keys):
    tree = AVLTree()
    assert tree.insert(keys[0], None) == 0
    assert tree.insert(keys[1], None) == 0
    assert tree.insert(keys[2], None) == 2
    assert tree.get_root().key == 2
    assert tree.get_root().parent is None
    assert list(tree.keys_to_array()) == [1, 2, 3]


def test_delete_single_rotation():
    tree = build([2, 1, 3, 4])
    assert tree.delete(1) == 1
    assert tree.get_root().key == 3
    assert list(tree.keys_to_array()) == [2, 3, 4]
    assert tree.min() == "v2"


def test_delete_double_rotation():
    tree = build([2, 1, 4, 3])
    assert tree.delete(1) == 2
    assert tree.get_root().key == 3
    assert list(tree.keys_to_array()) == [2, 3, 4]


def test_delete_rotates_at_several_levels():
    # Minimal AVL tree of height 4; removing the largest key
    # unbalances two ancestors in turn.
    tree = build([8, 5, 11, 3, 7, 10, 12, 2, 4, 6, 9, 1])
    assert tree.get_root().height == 4
    assert tree.delete(12) == 2
    assert list(tree.keys_to_array()) == [1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11]
    assert tree.get_root().key == 5


def test_delete_root_with_single_child():
    tree = build([1, 2])
    assert tree.delete(1) == 0
    root = tree.get_root()
    assert root.key == 2
    assert root.parent is None
    assert root.is_leaf()
    assert tree.min() == "v2"
    assert tree.max() == "v2"


def test_delete_last_node():
    tree = build([1])
    assert tree.delete(1) == 0
    assert tree.empty()
    assert tree.min() is None
    assert tree.max() is None
    assert tree.insert(2, "two") == 0
    assert tree.min() == "two"


def test_delete_two_children_moves_successor_data():
    tree = build([5, 3, 8, 7, 9])
    root = tree.get_root()
    assert tree.delete(5) == 0
    assert tree.get_root() is root
    assert root.key == 7
    assert root.value == "v7"
    assert root.key_sum == 3 + 7 + 8 + 9
    assert root.size == 4


def test_virtual_children():
    tree = build([1])
    root = tree.get_root()
    assert isinstance(root.left, VirtualNode)
    assert isinstance(root.right, VirtualNode)
    assert root.left.parent is root
    assert root.left.height == -1
    assert root.left.size == 0
    assert root.left.key_sum == 0
    assert root.height == 0
    assert root.size == 1
    assert root.key_sum == 1


def test_select_out_of_range(sample_tree):
    assert sample_tree.select(0) is None
    assert sample_tree.select(-1) is None
    assert sample_tree.select(8) is None
    assert sample_tree.select(1) == "v1"
    assert sample_tree.select(7) == "v9"


def test_rank(sample_tree):
    assert sample_tree.rank(1) == 1
    assert sample_tree.rank(5) == 4
    assert sample_tree.rank(9) == 7
    assert sample_tree.rank(6) is None


def test_bounds(sample_tree):
    assert sample_tree.lower_bound(6) == (7, "v7")
    assert sample_tree.lower_bound(7) == (7, "v7")
    assert sample_tree.lower_bound(10) is None
    assert sample_tree.upper_bound(6) == (5, "v5")
    assert sample_tree.upper_bound(0) is None
    assert list(sample_tree.keys(2, 7)) == [3, 4, 5, 7]
    assert list(sample_tree.keys(7, 2, reverse=True)) == [7, 5, 4, 3]
    assert list(sample_tree.keys(5.5, 6.5)) == []


def test_mapping_protocol(sample_tree):
    sample_tree[5] = "five"
    assert sample_tree.search(5) == "five"
    assert sample_tree.size() == 7

    sample_tree[6] = "v6"
    assert 6 in sample_tree
    assert sample_tree.get(6) == "v6"
    assert sample_tree.get(2) is None
    assert sample_tree.pop(6) == "v6"
    assert 6 not in sample_tree

    with pytest.raises(KeyError):
        sample_tree[2]
    with pytest.raises(KeyError):
        del sample_tree[2]

    assert list(sample_tree) == [1, 3, 4, 5, 7, 8, 9]
    assert list(reversed(sample_tree)) == [9, 8, 7, 5, 4, 3, 1]
    assert dict(sample_tree.items())[5] == "five"


def test_numpy_integer_keys():
    tree = AVLTree()
    assert tree.insert(np.int32(4), "a") == 0
    assert tree.insert(np.int64(2), "b") == 0
    assert type(tree.get_root().key) is int
    assert tree.less(3) == 2


@pytest.mark.parametrize("key", ["1", 1.5, None])
def test_insert_rejects_non_integer_keys(key):
    tree = AVLTree()
    with pytest.raises(TypeError):
        tree.insert(key, "x")
    assert tree.empty()


def test_print(sample_tree):
    lines = sample_tree.print().splitlines()
    assert len(lines) == 7
    assert lines[3] == "5 (h=2, n=7, sum=37)"
    assert lines[0] == "        1 (h=0, n=1, sum=1)"


def test_rotation_logging(caplog):
    tree = AVLTree()
    with caplog.at_level(logging.DEBUG, logger="avlindex"):
        tree.insert(1, None)
        tree.insert(2, None)
        tree.insert(3, None)
    assert any("RR rotation" in r.getMessage() for r in caplog.records)


def test_keys_beyond_int64():
    tree = AVLTree()
    assert tree.insert(1, "one") == 0
    assert tree.insert(2**63, "big") == 0
    assert tree.insert(-(2**70), "small") == 0

    out = tree.keys_to_array()
    assert out.dtype == object
    assert list(out) == [-(2**70), 1, 2**63]
    assert len(out) == tree.size()
    assert tree.less(2**63) == 2**63 + 1 - 2**70


def test_keys_at_int64_limits():
    info = np.iinfo(np.int64)
    tree = build([int(info.min), 0, int(info.max)])
    out = tree.keys_to_array()
    assert out.dtype == np.int64
    assert list(out) == [info.min, 0, info.max]


@pytest.mark.parametrize("rank", [2.5, 1.0, "1", None])
def test_select_rejects_non_integer_rank(sample_tree, rank):
    assert sample_tree.select(rank) is None


def test_select_numpy_rank(sample_tree):
    assert sample_tree.select(np.int64(4)) == "v5"


def test_virtual_child_parent_after_splice():
    tree = build([2, 1, 3])
    assert tree.delete(1) == 0
    root = tree.get_root()
    assert isinstance(root.left, VirtualNode)
    assert root.left.parent is root
    assert root.right.left.parent is root.right
