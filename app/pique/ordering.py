"""Ordered collections with contiguous order indices.

``OrderedCollection`` is immutable: every operation returns a new collection
and leaves the input untouched, so a collection captured before an
optimistic mutation can be restored verbatim. After every operation the
items' ``order`` values are exactly ``0..N-1`` and match their positions.

``OrderedCollectionStore`` holds the current collection of one entity kind.
It is written only by the mutation executor; readers always observe a
complete collection, never an intermediate state.
"""

import dataclasses
from typing import (
    Any,
    Callable,
    Generic,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)

from infrastructure.logging import get_module_logger
from infrastructure.operations.exceptions import (
    EntityNotFoundError,
    InvalidArgumentError,
)

logger = get_module_logger()

T = TypeVar("T")


def _with_order(item: T, order: int) -> T:
    if getattr(item, "order") == order:
        return item
    return dataclasses.replace(item, order=order)


class OrderedCollection(Generic[T]):
    """Immutable sequence of identified items ordered by position.

    Items must be dataclasses exposing ``id`` and ``order`` fields.
    """

    __slots__ = ("_items", "_index", "kind")

    def __init__(self, items: Iterable[T] = (), kind: str = "item") -> None:
        normalized = tuple(_with_order(item, i) for i, item in enumerate(items))
        index = {}
        for position, item in enumerate(normalized):
            item_id = getattr(item, "id")
            if item_id in index:
                raise InvalidArgumentError(f"duplicate {kind} id: {item_id}")
            index[item_id] = position
        self._items: Tuple[T, ...] = normalized
        self._index = index
        self.kind = kind

    @classmethod
    def from_unordered(cls, items: Iterable[T], kind: str = "item") -> "OrderedCollection[T]":
        """Build a collection from items carrying possibly gapped ``order`` values."""
        return cls(sorted(items, key=lambda item: getattr(item, "order")), kind=kind)

    def _derive(self, items: Iterable[T]) -> "OrderedCollection[T]":
        return OrderedCollection(items, kind=self.kind)

    # Read access

    @property
    def items(self) -> Tuple[T, ...]:
        return self._items

    @property
    def ids(self) -> List[str]:
        return [getattr(item, "id") for item in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __getitem__(self, position: int) -> T:
        return self._items[position]

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OrderedCollection):
            return NotImplemented
        return self._items == other._items

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"OrderedCollection({self.kind}, ids={self.ids})"

    def index_of(self, item_id: str) -> int:
        try:
            return self._index[item_id]
        except KeyError:
            raise EntityNotFoundError(self.kind, item_id) from None

    def get(self, item_id: str) -> T:
        return self._items[self.index_of(item_id)]

    def find(self, item_id: str) -> Optional[T]:
        position = self._index.get(item_id)
        return None if position is None else self._items[position]

    # Operations

    def insert_at(self, item: T, index: int) -> "OrderedCollection[T]":
        """Insert ``item`` at ``index`` (0..N); items at or after it shift up."""
        if not 0 <= index <= len(self._items):
            raise InvalidArgumentError(
                f"insert index {index} out of range 0..{len(self._items)}"
            )
        item_id = getattr(item, "id")
        if item_id in self._index:
            raise InvalidArgumentError(f"duplicate {self.kind} id: {item_id}")
        items = list(self._items)
        items.insert(index, item)
        return self._derive(items)

    def append(self, item: T) -> "OrderedCollection[T]":
        return self.insert_at(item, len(self._items))

    def remove_by_id(self, item_id: str) -> "OrderedCollection[T]":
        """Remove the item; items after it shift down."""
        position = self.index_of(item_id)
        return self._derive(self._items[:position] + self._items[position + 1 :])

    def move_by_id(self, item_id: str, new_index: int) -> "OrderedCollection[T]":
        """Move the item to ``new_index`` (0..N-1)."""
        position = self.index_of(item_id)
        if not 0 <= new_index < len(self._items):
            raise InvalidArgumentError(
                f"move index {new_index} out of range 0..{len(self._items) - 1}"
            )
        items = list(self._items)
        item = items.pop(position)
        items.insert(new_index, item)
        return self._derive(items)

    def reindex(self, ordered_ids: Sequence[str]) -> "OrderedCollection[T]":
        """Reorder to match ``ordered_ids``, which must be a permutation of the ids."""
        ordered_ids = list(ordered_ids)
        if len(ordered_ids) != len(self._items) or set(ordered_ids) != set(self._index):
            raise InvalidArgumentError(
                f"reindex ids are not a permutation of the {self.kind} ids"
            )
        return self._derive(self._items[self._index[i]] for i in ordered_ids)

    def replace(self, item: T) -> "OrderedCollection[T]":
        """Replace the item with the same id, keeping its position."""
        position = self.index_of(getattr(item, "id"))
        items = list(self._items)
        items[position] = item
        return self._derive(items)

    def replace_many(
        self,
        remove_ids: Sequence[str],
        inserts: Sequence[T],
        at_index: Optional[int] = None,
    ) -> "OrderedCollection[T]":
        """Remove ``remove_ids`` and insert ``inserts`` contiguously.

        ``at_index`` defaults to the smallest position among the removed items.
        """
        positions = [self.index_of(item_id) for item_id in remove_ids]
        removed = set(remove_ids)
        kept = [item for item in self._items if getattr(item, "id") not in removed]
        if at_index is None:
            at_index = min(positions) if positions else len(kept)
        if not 0 <= at_index <= len(kept):
            raise InvalidArgumentError(
                f"insert index {at_index} out of range 0..{len(kept)}"
            )
        return self._derive(kept[:at_index] + list(inserts) + kept[at_index:])

    def map(self, fn: Callable[[T], T]) -> "OrderedCollection[T]":
        return self._derive(fn(item) for item in self._items)

    def remap_ids(self, mapping: Mapping[str, str]) -> "OrderedCollection[T]":
        """Substitute placeholder ids with authoritative ones."""
        if not mapping:
            return self
        remapped = [item.remap_ids(mapping) for item in self._items]
        if all(a is b for a, b in zip(remapped, self._items)):
            return self
        return self._derive(remapped)


ChangeListener = Callable[[OrderedCollection[Any]], Any]


class OrderedCollectionStore(Generic[T]):
    """Holds the current collection for one entity kind.

    Attributes:
        kind: Entity kind name used in errors and logs
        version: Incremented on every replacement
    """

    def __init__(self, kind: str, items: Iterable[T] = ()) -> None:
        self.kind = kind
        self._collection: OrderedCollection[T] = OrderedCollection.from_unordered(
            items, kind=kind
        )
        self.version = 0
        self._listeners: List[ChangeListener] = []

    @property
    def collection(self) -> OrderedCollection[T]:
        return self._collection

    def replace_collection(self, collection: OrderedCollection[T]) -> None:
        """Swap in ``collection`` atomically and notify listeners."""
        if collection is self._collection:
            return
        self._collection = collection
        self.version += 1
        for listener in list(self._listeners):
            try:
                listener(collection)
            except Exception as e:
                logger.error(
                    "collection_listener_failed",
                    kind=self.kind,
                    listener=getattr(listener, "__name__", "unknown"),
                    error=str(e),
                )

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


def order_changes(
    before: OrderedCollection[Any], after: OrderedCollection[Any]
) -> List[Tuple[str, int]]:
    """(id, order) for every item of ``after`` whose order differs from ``before``."""
    changes = []
    for item in after:
        previous = before.find(item.id)
        if previous is None or previous.order != item.order:
            changes.append((item.id, item.order))
    return changes
