"""Unit tests for OrderedCollection and OrderedCollectionStore.

Tests cover:
- Contiguous order indices after every operation
- Immutability of the input collection
- Argument validation
- Store replacement and listeners
"""

import random
from unittest.mock import MagicMock

import pytest

from infrastructure.operations.exceptions import (
    EntityNotFoundError,
    InvalidArgumentError,
)
from pique.ordering import (
    OrderedCollection,
    OrderedCollectionStore,
    order_changes,
)
from tests.factories import make_segment, make_segments


def assert_contiguous(collection):
    assert [item.order for item in collection] == list(range(len(collection)))


@pytest.mark.unit
class TestOrderedCollection:
    """Test suite for OrderedCollection operations."""

    def test_construction_normalizes_order(self):
        segments = [make_segment("A", order=7), make_segment("B", order=3)]

        collection = OrderedCollection(segments)

        assert collection.ids == ["A", "B"]
        assert_contiguous(collection)

    def test_from_unordered_sorts_by_order(self):
        segments = [make_segment("A", order=7), make_segment("B", order=3)]

        collection = OrderedCollection.from_unordered(segments)

        assert collection.ids == ["B", "A"]
        assert_contiguous(collection)

    def test_duplicate_ids_rejected(self):
        with pytest.raises(InvalidArgumentError, match="duplicate"):
            OrderedCollection([make_segment("A"), make_segment("A")])

    def test_move_to_front(self, segment_collection_factory):
        """Test moving C to 0 in [A, B, C] gives [C, A, B] with orders 0..2."""
        collection = segment_collection_factory(["A", "B", "C"])

        moved = collection.move_by_id("C", 0)

        assert moved.ids == ["C", "A", "B"]
        assert [(s.id, s.order) for s in moved] == [("C", 0), ("A", 1), ("B", 2)]

    def test_operations_leave_input_untouched(self, segment_collection_factory):
        collection = segment_collection_factory(["A", "B", "C"])
        before = collection.items

        collection.move_by_id("A", 2)
        collection.remove_by_id("B")
        collection.insert_at(make_segment("D"), 0)

        assert collection.items == before
        assert collection.ids == ["A", "B", "C"]

    def test_insert_at_shifts_following_items(self, segment_collection_factory):
        collection = segment_collection_factory(["A", "B"])

        inserted = collection.insert_at(make_segment("X"), 1)

        assert inserted.ids == ["A", "X", "B"]
        assert_contiguous(inserted)

    def test_insert_at_end(self, segment_collection_factory):
        collection = segment_collection_factory(["A"])

        assert collection.insert_at(make_segment("X"), 1).ids == ["A", "X"]

    def test_insert_out_of_range(self, segment_collection_factory):
        collection = segment_collection_factory(["A"])

        with pytest.raises(InvalidArgumentError):
            collection.insert_at(make_segment("X"), 2)

    def test_insert_duplicate_id(self, segment_collection_factory):
        collection = segment_collection_factory(["A"])

        with pytest.raises(InvalidArgumentError, match="duplicate"):
            collection.append(make_segment("A"))

    def test_remove_shifts_following_items(self, segment_collection_factory):
        collection = segment_collection_factory(["A", "B", "C"])

        removed = collection.remove_by_id("A")

        assert [(s.id, s.order) for s in removed] == [("B", 0), ("C", 1)]

    def test_remove_unknown_id(self, segment_collection_factory):
        collection = segment_collection_factory(["A"])

        with pytest.raises(EntityNotFoundError):
            collection.remove_by_id("missing")

    def test_move_out_of_range(self, segment_collection_factory):
        collection = segment_collection_factory(["A", "B"])

        with pytest.raises(InvalidArgumentError):
            collection.move_by_id("A", 2)

    def test_reindex(self, segment_collection_factory):
        collection = segment_collection_factory(["A", "B", "C"])

        reordered = collection.reindex(["B", "C", "A"])

        assert reordered.ids == ["B", "C", "A"]
        assert_contiguous(reordered)

    @pytest.mark.parametrize(
        "ordered_ids", [["A", "B"], ["A", "B", "B"], ["A", "B", "X"]]
    )
    def test_reindex_requires_permutation(self, segment_collection_factory, ordered_ids):
        collection = segment_collection_factory(["A", "B", "C"])

        with pytest.raises(InvalidArgumentError, match="permutation"):
            collection.reindex(ordered_ids)

    def test_replace_keeps_position(self, segment_collection_factory):
        collection = segment_collection_factory(["A", "B"])
        renamed = make_segment("B", title="Renamed", order=99)

        replaced = collection.replace(renamed)

        assert replaced.get("B").title == "Renamed"
        assert replaced.get("B").order == 1

    def test_replace_many_inserts_at_first_removed_position(
        self, segment_collection_factory
    ):
        collection = segment_collection_factory(["A", "B", "C", "D"])

        replaced = collection.replace_many(["B", "D"], [make_segment("X")])

        assert replaced.ids == ["A", "X", "C"]
        assert_contiguous(replaced)

    def test_remap_ids(self, segment_collection_factory):
        collection = segment_collection_factory(["temp_a", "B"])

        remapped = collection.remap_ids({"temp_a": "seg-9"})

        assert remapped.ids == ["seg-9", "B"]
        assert remapped.get("B") is collection.get("B")

    def test_remap_without_matches_returns_same_collection(
        self, segment_collection_factory
    ):
        collection = segment_collection_factory(["A"])

        assert collection.remap_ids({"other": "x"}) is collection
        assert collection.remap_ids({}) is collection

    def test_random_operations_keep_orders_contiguous(self):
        """Test a seeded random walk of operations never breaks the order invariant."""
        rng = random.Random(1234)
        collection = OrderedCollection(make_segments(["A", "B", "C"]))
        counter = 0

        for _ in range(300):
            op = rng.choice(["insert", "remove", "move", "reindex"])
            if op == "insert" or not len(collection):
                counter += 1
                position = rng.randint(0, len(collection))
                collection = collection.insert_at(
                    make_segment(f"N{counter}"), position
                )
            elif op == "remove":
                collection = collection.remove_by_id(rng.choice(collection.ids))
            elif op == "move":
                collection = collection.move_by_id(
                    rng.choice(collection.ids), rng.randrange(len(collection))
                )
            else:
                ids = collection.ids
                rng.shuffle(ids)
                collection = collection.reindex(ids)

            assert_contiguous(collection)
            assert len(set(collection.ids)) == len(collection)


@pytest.mark.unit
class TestOrderChanges:
    """Test suite for order_changes()."""

    def test_reports_only_changed_orders(self, segment_collection_factory):
        before = segment_collection_factory(["A", "B", "C"])
        after = before.move_by_id("C", 1)

        assert order_changes(before, after) == [("C", 1), ("B", 2)]

    def test_reports_new_items(self, segment_collection_factory):
        before = segment_collection_factory(["A"])
        after = before.append(make_segment("X"))

        assert order_changes(before, after) == [("X", 1)]


@pytest.mark.unit
class TestOrderedCollectionStore:
    """Test suite for OrderedCollectionStore."""

    def test_initial_items_sorted_by_order(self):
        store = OrderedCollectionStore(
            "segment", [make_segment("B", order=1), make_segment("A", order=0)]
        )

        assert store.collection.ids == ["A", "B"]
        assert store.version == 0

    def test_replace_collection_notifies_listeners(self, segment_collection_factory):
        store = OrderedCollectionStore("segment")
        listener = MagicMock()
        store.subscribe(listener)
        collection = segment_collection_factory(["A"])

        store.replace_collection(collection)

        assert store.collection is collection
        assert store.version == 1
        listener.assert_called_once_with(collection)

    def test_replacing_with_same_collection_is_noop(self, segment_collection_factory):
        store = OrderedCollectionStore("segment", make_segments(["A"]))
        listener = MagicMock()
        store.subscribe(listener)

        store.replace_collection(store.collection)

        assert store.version == 0
        listener.assert_not_called()

    def test_failing_listener_does_not_block_replacement(
        self, segment_collection_factory
    ):
        store = OrderedCollectionStore("segment")
        store.subscribe(MagicMock(side_effect=RuntimeError("boom")))
        working = MagicMock()
        store.subscribe(working)

        store.replace_collection(segment_collection_factory(["A"]))

        assert store.collection.ids == ["A"]
        working.assert_called_once()

    def test_unsubscribe(self, segment_collection_factory):
        store = OrderedCollectionStore("segment")
        listener = MagicMock()
        unsubscribe = store.subscribe(listener)

        unsubscribe()
        store.replace_collection(segment_collection_factory(["A"]))

        listener.assert_not_called()
