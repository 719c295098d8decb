"""
Candidate representations used to count itemset supports.

Both strategies implement the same two-step contract: ``build_plan`` turns
a list of same-length candidates into a backend specific structure once per
level, and ``count`` returns the per-candidate support counts over a slice
of transactions. Counts of disjoint slices add up to the full count, so the
engine can split the scan into chunks and sum the partial results.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Sequence, Tuple

import numpy as np

from subgroup_miner.exceptions import ConfigurationError, ResourceExhausted
from subgroup_miner.rule_mining.itemset import Transaction

# dense matrix cells allowed before the array backend refuses to build
DEFAULT_MAX_MATRIX_CELLS = 2_000_000_000


class SupportCounter(ABC):
    """Counts how many transactions contain each candidate itemset."""

    name = None

    def __init__(self, transactions: Sequence[Transaction], item_count: int, **kwargs):
        self.item_count = item_count
        self.n_transactions = len(transactions)

    @abstractmethod
    def build_plan(self, candidates: Sequence[Tuple[int, ...]]):
        """Prepare the candidates of one level for counting."""
        pass

    @abstractmethod
    def count(self, plan, start: int, stop: int) -> np.ndarray:
        """
        Count candidate occurrences in transactions ``start`` to ``stop``.

        Returns:
            int64 array aligned with the candidate list the plan was built from
        """
        pass

    def __repr__(self):
        return f"{self.__class__.__name__}(transactions={self.n_transactions}, items={self.item_count})"


class ArrayCounter(SupportCounter):
    """
    Dense boolean transaction matrix.

    Candidates that share everything but their last item are counted
    together: the rows matching the shared prefix are selected once and the
    last-item columns are summed over those rows.
    """

    name = 'array'

    def __init__(
            self,
            transactions: Sequence[Transaction],
            item_count: int,
            max_matrix_cells: int = DEFAULT_MAX_MATRIX_CELLS,
            **kwargs
    ):
        super().__init__(transactions, item_count)
        cells = self.n_transactions * item_count
        if max_matrix_cells is not None and cells > max_matrix_cells:
            raise ResourceExhausted(
                f"Transaction matrix of {self.n_transactions} x {item_count} cells "
                f"exceeds the limit of {max_matrix_cells}.",
                hint="Use the 'prefix_tree' backend or reduce the number of items."
            )
        self.matrix = np.zeros((self.n_transactions, item_count), dtype=bool)
        for row, transaction in enumerate(transactions):
            if transaction.items:
                self.matrix[row, list(transaction.items)] = True

    def build_plan(self, candidates: Sequence[Tuple[int, ...]]):
        groups: Dict[Tuple[int, ...], Tuple[List[int], List[int]]] = {}
        for index, candidate in enumerate(candidates):
            positions, last_items = groups.setdefault(candidate[:-1], ([], []))
            positions.append(index)
            last_items.append(candidate[-1])
        plan = [
            (np.asarray(prefix, dtype=np.intp),
             np.asarray(positions, dtype=np.intp),
             np.asarray(last_items, dtype=np.intp))
            for prefix, (positions, last_items) in groups.items()
        ]
        return len(candidates), plan

    def count(self, plan, start: int, stop: int) -> np.ndarray:
        n_candidates, groups = plan
        counts = np.zeros(n_candidates, dtype=np.int64)
        chunk = self.matrix[start:stop]
        for prefix, positions, last_items in groups:
            if len(prefix):
                rows = chunk[chunk[:, prefix].all(axis=1)]
            else:
                rows = chunk
            if rows.shape[0]:
                counts[positions] = rows[:, last_items].sum(axis=0)
        return counts


class _TrieNode:
    __slots__ = ('children', 'index')

    def __init__(self):
        self.children = {}
        self.index = -1


class PrefixTreeCounter(SupportCounter):
    """
    Candidates stored in a prefix tree keyed by their canonical sequence.

    Each transaction walks the tree depth first, following only items it
    contains, so a transaction touches just the candidates it could support.
    """

    name = 'prefix_tree'

    def __init__(self, transactions: Sequence[Transaction], item_count: int, **kwargs):
        super().__init__(transactions, item_count)
        self.transactions = [t.items for t in transactions]

    def build_plan(self, candidates: Sequence[Tuple[int, ...]]):
        root = _TrieNode()
        length = 0
        for index, candidate in enumerate(candidates):
            node = root
            for item in candidate:
                child = node.children.get(item)
                if child is None:
                    child = node.children[item] = _TrieNode()
                node = child
            node.index = index
            length = max(length, len(candidate))
        return len(candidates), root, length

    def count(self, plan, start: int, stop: int) -> np.ndarray:
        n_candidates, root, length = plan
        counts = [0] * n_candidates
        for items in self.transactions[start:stop]:
            if len(items) >= length:
                self._walk(root, items, 0, length, counts)
        return np.asarray(counts, dtype=np.int64)

    def _walk(self, node, items, pos, remaining, counts):
        # stop early when too few items are left to complete a candidate
        for i in range(pos, len(items) - remaining + 1):
            child = node.children.get(items[i])
            if child is None:
                continue
            if child.index >= 0:
                counts[child.index] += 1
            if child.children:
                self._walk(child, items, i + 1, remaining - 1, counts)


BACKENDS = {
    ArrayCounter.name: ArrayCounter,
    PrefixTreeCounter.name: PrefixTreeCounter
}


def create_counter(backend: str, transactions: Sequence[Transaction], item_count: int, **kwargs) -> SupportCounter:
    key = str(backend).lower()
    if key not in BACKENDS:
        raise ConfigurationError(f"Backend must be one of {sorted(BACKENDS)}, got '{backend}'")
    return BACKENDS[key](transactions, item_count, **kwargs)
