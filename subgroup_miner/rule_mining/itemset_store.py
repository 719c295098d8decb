"""
Itemset Store: interns frequent itemsets by their canonical item sequence.

Besides plain lookups the store answers superset queries through an
inverted index (item id -> keys of itemsets containing it) combined with a
grouping of itemsets by size. The closed and maximal views only need the
immediate supersets of an itemset: support is anti-monotone, so if any
frequent proper superset has equal support (or exists at all), one with
exactly one additional item does as well.
"""
import logging
from collections import defaultdict
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple, Union

from subgroup_miner.exceptions import InternalInvariantViolation
from subgroup_miner.rule_mining.itemset import FrequentItemSet, ItemSetType, canonical

logger = logging.getLogger(__name__)

ItemsLike = Union[FrequentItemSet, Iterable[int]]


def _key(itemset: ItemsLike) -> Tuple[int, ...]:
    if isinstance(itemset, FrequentItemSet):
        return itemset.items
    return canonical(itemset)


class ItemsetStore:
    """
    Deduplicating, indexed collection of frequent itemsets.

    Args:
        itemsets: Initial itemsets
        default_type: Type returned by ``get()`` when called without one
        total_transactions: Number of transactions supports refer to
    """

    def __init__(
            self,
            itemsets: Iterable[FrequentItemSet] = (),
            default_type: ItemSetType = ItemSetType.FREE,
            total_transactions: int = 0
    ):
        self.default_type = ItemSetType.parse(default_type)
        self.total_transactions = total_transactions
        self._itemsets: Dict[Tuple[int, ...], FrequentItemSet] = {}
        self._by_size: Dict[int, List[Tuple[int, ...]]] = defaultdict(list)
        self._by_item: Dict[int, Set[Tuple[int, ...]]] = defaultdict(set)
        self._frozen = False
        self._views: Dict[ItemSetType, List[FrequentItemSet]] = {}
        for itemset in itemsets:
            self.add(itemset)

    def add(self, itemset: FrequentItemSet) -> FrequentItemSet:
        """Intern an itemset; returns the stored instance."""
        if self._frozen:
            raise InternalInvariantViolation(
                f"Itemset store is frozen, cannot add {itemset.items}")
        key = itemset.items
        if key != canonical(key):
            raise InternalInvariantViolation(f"Itemset {key} is not in canonical order")
        existing = self._itemsets.get(key)
        if existing is not None:
            if existing.count != itemset.count:
                raise InternalInvariantViolation(
                    f"Conflicting counts for itemset {key}: {existing.count} vs {itemset.count}")
            return existing
        self._itemsets[key] = itemset
        self._by_size[len(key)].append(key)
        for item in key:
            self._by_item[item].add(key)
        return itemset

    def freeze(self) -> 'ItemsetStore':
        """Mark construction as complete; the store is read-only afterwards."""
        for keys in self._by_size.values():
            keys.sort()
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def contains(self, itemset: ItemsLike) -> bool:
        return _key(itemset) in self._itemsets

    def __contains__(self, itemset) -> bool:
        return self.contains(itemset)

    def get_itemset(self, itemset: ItemsLike) -> Optional[FrequentItemSet]:
        return self._itemsets.get(_key(itemset))

    def support_of(self, itemset: ItemsLike) -> Optional[float]:
        found = self.get_itemset(itemset)
        return found.support if found is not None else None

    def __len__(self):
        return len(self._itemsets)

    def __iter__(self) -> Iterator[FrequentItemSet]:
        for key in sorted(self._itemsets, key=lambda k: (len(k), k)):
            yield self._itemsets[key]

    @property
    def max_length(self) -> int:
        return max(self._by_size) if self._by_size else 0

    def by_size(self, size: int) -> List[FrequentItemSet]:
        return [self._itemsets[key] for key in sorted(self._by_size.get(size, []))]

    def supersets_of(self, itemset: ItemsLike, immediate: bool = False) -> Iterator[FrequentItemSet]:
        """
        Proper frequent supersets of ``itemset``.

        Args:
            itemset: Itemset or iterable of item ids
            immediate: Only yield supersets with exactly one additional item
        """
        key = _key(itemset)
        if not key:
            candidates = set(self._itemsets)
        else:
            postings = sorted((self._by_item.get(item, set()) for item in key), key=len)
            candidates = set(postings[0])
            for posting in postings[1:]:
                candidates &= posting
                if not candidates:
                    break
        size = len(key)
        for other in sorted(candidates, key=lambda k: (len(k), k)):
            if len(other) <= size:
                continue
            if immediate and len(other) != size + 1:
                continue
            yield self._itemsets[other]

    def is_closed(self, itemset: FrequentItemSet) -> bool:
        return all(sup.count != itemset.count
                   for sup in self.supersets_of(itemset, immediate=True))

    def is_maximal(self, itemset: FrequentItemSet) -> bool:
        return next(self.supersets_of(itemset, immediate=True), None) is None

    def get(self, itemset_type: ItemSetType = None) -> List[FrequentItemSet]:
        """
        Itemsets of the requested type ordered by (length, items).

        FREE returns every stored itemset, CLOSED those without an
        equal-support superset and MAXIMAL those without any superset.
        """
        itemset_type = ItemSetType.parse(itemset_type or self.default_type)
        if self._frozen and itemset_type in self._views:
            return list(self._views[itemset_type])

        if itemset_type is ItemSetType.FREE:
            result = list(self)
        elif itemset_type is ItemSetType.CLOSED:
            result = [s for s in self if self.is_closed(s)]
        else:
            result = [s for s in self if self.is_maximal(s)]

        logger.debug("%s view: %d of %d itemsets", itemset_type.name, len(result), len(self))
        if self._frozen:
            self._views[itemset_type] = result
        return list(result)

    def __repr__(self):
        return (f"ItemsetStore(itemsets={len(self)}, max_length={self.max_length}, "
                f"default_type={self.default_type.name})")
