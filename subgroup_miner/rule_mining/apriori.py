"""
Apriori Search Engine.

Level-wise search for frequent itemsets. Level k+1 candidates are built by
extending every frequent k-itemset with a larger item and are pruned when
any of their k-subsets is not frequent (downward closure). Supports of the
surviving candidates are counted by a pluggable backend over chunks of the
transaction list, which keeps cancellation and progress reporting
responsive and allows the scan to run on several worker threads.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from joblib import Parallel, delayed

from subgroup_miner.exceptions import ConfigurationError, ResourceExhausted
from subgroup_miner.rule_mining.backends import DEFAULT_MAX_MATRIX_CELLS, SupportCounter, create_counter
from subgroup_miner.rule_mining.itemset import (
    AssociationRule, FrequentItemSet, ItemSetType, Transaction, canonical
)
from subgroup_miner.rule_mining.itemset_store import ItemsetStore
from subgroup_miner.rule_mining.progress import ExecutionMonitor, ensure_monitor
from subgroup_miner.rule_mining.rule_generator import generate_rules

DEFAULT_MIN_SUPPORT = 0.9
DEFAULT_MAX_ITEMSET_LENGTH = 10
DEFAULT_MIN_CONFIDENCE = 0.8
DEFAULT_MAX_CANDIDATES = 5_000_000
DEFAULT_CHUNK_SIZE = 4096


def validate_parameters(
        min_support: float,
        max_itemset_length: int,
        min_confidence: float = None
) -> None:
    if isinstance(min_support, bool) or not isinstance(min_support, (int, float)) \
            or not 0 < min_support <= 1:
        raise ConfigurationError(f"min_support must be in (0, 1], got {min_support}")
    if isinstance(max_itemset_length, bool) or not isinstance(max_itemset_length, (int, np.integer)) \
            or max_itemset_length < 1:
        raise ConfigurationError(f"max_itemset_length must be an integer >= 1, got {max_itemset_length}")
    if min_confidence is not None:
        validate_min_confidence(min_confidence)


def validate_min_confidence(min_confidence: float) -> None:
    if isinstance(min_confidence, bool) or not isinstance(min_confidence, (int, float)) \
            or not 0 <= min_confidence <= 1:
        raise ConfigurationError(f"min_confidence must be in [0, 1], got {min_confidence}")


def normalize_transactions(
        transactions: Sequence[Union[Transaction, Sequence[int]]],
        item_count: int = None
) -> Tuple[List[Transaction], int]:
    """
    Check item ids and infer the item count.

    Plain item sequences are accepted and turned into Transactions whose tid
    is their position.
    """
    result = []
    observed = 0
    for position, transaction in enumerate(transactions):
        if not isinstance(transaction, Transaction):
            transaction = Transaction(position, canonical(transaction))
        items = transaction.items
        if items:
            if items[0] < 0:
                raise ConfigurationError(
                    f"Transaction {transaction.tid} contains negative item id {items[0]}")
            if any(a >= b for a, b in zip(items, items[1:])):
                raise ConfigurationError(
                    f"Transaction {transaction.tid} items are not strictly ascending: {items}")
            observed = max(observed, items[-1] + 1)
        result.append(transaction)

    if item_count is None:
        item_count = observed
    elif observed > item_count:
        raise ConfigurationError(
            f"Item id {observed - 1} is outside the item range [0, {item_count})")
    return result, item_count


def generate_candidates(
        frequent: Sequence[Tuple[int, ...]],
        max_candidates: int = None
) -> List[Tuple[int, ...]]:
    """
    Build the level k+1 candidates from the frequent k-itemsets.

    Each itemset is extended by the last items of the frequent itemsets that
    share its prefix and end in a larger item, which is exactly the set of
    larger items whose extension can survive pruning. A candidate is kept
    only if all of its k-subsets are frequent.

    Raises:
        ResourceExhausted: if more than ``max_candidates`` candidates survive
    """
    ordered = sorted(frequent)
    level = set(ordered)
    groups: Dict[Tuple[int, ...], List[int]] = {}
    for itemset in ordered:
        groups.setdefault(itemset[:-1], []).append(itemset[-1])

    candidates = []
    for prefix, last_items in groups.items():
        for i, first in enumerate(last_items):
            base = prefix + (first,)
            for second in last_items[i + 1:]:
                candidate = base + (second,)
                # dropping either of the last two items gives a member of this group
                if all(candidate[:j] + candidate[j + 1:] in level for j in range(len(candidate) - 2)):
                    candidates.append(candidate)
                    if max_candidates is not None and len(candidates) > max_candidates:
                        raise ResourceExhausted(
                            f"Candidate generation for itemsets of length {len(candidate)} "
                            f"exceeded {max_candidates} candidates.")
    candidates.sort()
    return candidates


def candidate_upper_bound(frequent: Sequence[Tuple[int, ...]]) -> int:
    """Number of level k+1 candidates before subset pruning."""
    sizes: Dict[Tuple[int, ...], int] = {}
    for itemset in frequent:
        sizes[itemset[:-1]] = sizes.get(itemset[:-1], 0) + 1
    return sum(n * (n - 1) // 2 for n in sizes.values())


class AprioriSearch:
    """
    Level-wise frequent itemset search.

    Args:
        min_support: Minimum relative support in (0, 1]
        max_itemset_length: Longest itemset to search for
        itemset_type: Default view of the returned store
        backend: Name of the candidate counting strategy ('array', 'prefix_tree')
        monitor: Progress and cancellation collaborator
        n_jobs: Worker threads for the transaction scan (joblib semantics)
        max_candidates: Largest number of candidates allowed on one level
        max_matrix_cells: Size limit of the dense transaction matrix
        chunk_size: Transactions per counting chunk
        logger: Logger receiving debug output
    """

    def __init__(
            self,
            min_support: float = DEFAULT_MIN_SUPPORT,
            max_itemset_length: int = DEFAULT_MAX_ITEMSET_LENGTH,
            itemset_type: Union[ItemSetType, str] = ItemSetType.FREE,
            backend: str = 'array',
            monitor: ExecutionMonitor = None,
            n_jobs: int = 1,
            max_candidates: int = DEFAULT_MAX_CANDIDATES,
            max_matrix_cells: int = DEFAULT_MAX_MATRIX_CELLS,
            chunk_size: int = DEFAULT_CHUNK_SIZE,
            logger: logging.Logger = None
    ):
        validate_parameters(min_support, max_itemset_length)
        if chunk_size < 1:
            raise ConfigurationError(f"chunk_size must be >= 1, got {chunk_size}")
        self.min_support = min_support
        self.max_itemset_length = int(max_itemset_length)
        self.itemset_type = ItemSetType.parse(itemset_type)
        self.backend = backend
        self.monitor = ensure_monitor(monitor)
        self.n_jobs = n_jobs
        self.max_candidates = max_candidates
        self.max_matrix_cells = max_matrix_cells
        self.chunk_size = chunk_size
        self.logger = logger or logging.getLogger(__name__)
        self.level_stats: List[Dict[str, int]] = []

    def run(
            self,
            transactions: Sequence[Union[Transaction, Sequence[int]]],
            item_count: int = None
    ) -> ItemsetStore:
        transactions, item_count = normalize_transactions(transactions, item_count)
        if not transactions:
            raise ConfigurationError("Cannot mine an empty transaction set")
        self.monitor.check_cancelled()
        self.level_stats = []
        n = len(transactions)

        self.logger.debug("max length: %d", item_count)
        self.logger.debug("support: %s, start apriori with %d transactions", self.min_support, n)
        try:
            counter = create_counter(
                self.backend, transactions, item_count, max_matrix_cells=self.max_matrix_cells)
            store = self._search(counter, item_count, n)
        except MemoryError as e:
            raise ResourceExhausted("Execution ran out of memory.") from e

        self.monitor.report_progress(1.0, "apriori finished")
        self.logger.debug("ended apriori: %d frequent itemsets", len(store))
        return store.freeze()

    def _search(self, counter: SupportCounter, item_count: int, n: int) -> ItemsetStore:
        store = ItemsetStore(default_type=self.itemset_type, total_transactions=n)
        candidates = [(item,) for item in range(item_count)]
        level = 1
        while candidates:
            self.monitor.check_cancelled()
            plan = counter.build_plan(candidates)
            counts = self._count(counter, plan, len(candidates), level, n)

            frequent = []
            for candidate, count in zip(candidates, counts.tolist()):
                support = count / n
                if support >= self.min_support:
                    frequent.append(store.add(FrequentItemSet(candidate, support, count)))
            self.level_stats.append({
                'level': level, 'candidates': len(candidates), 'frequent': len(frequent)
            })
            self.logger.debug("level %d: %d candidates, %d frequent",
                              level, len(candidates), len(frequent))

            if not frequent or level >= self.max_itemset_length:
                break
            keys = [itemset.items for itemset in frequent]
            self.logger.debug("level %d: at most %d candidates before pruning",
                              level + 1, candidate_upper_bound(keys))
            candidates = generate_candidates(keys, self.max_candidates)
            level += 1
        return store

    def _count(self, counter: SupportCounter, plan, n_candidates: int, level: int, n: int) -> np.ndarray:
        chunks = [(start, min(start + self.chunk_size, n)) for start in range(0, n, self.chunk_size)]
        if self.n_jobs == 1:
            partials = (self._count_chunk(counter, plan, start, stop) for start, stop in chunks)
        else:
            partials = Parallel(n_jobs=self.n_jobs, prefer='threads', return_as='generator')(
                delayed(self._count_chunk)(counter, plan, start, stop) for start, stop in chunks
            )

        totals = np.zeros(n_candidates, dtype=np.int64)
        done = 0
        for (start, stop), partial in zip(chunks, partials):
            totals += partial
            done += stop - start
            self.monitor.report_progress(
                (level - 1 + done / n) / self.max_itemset_length,
                f"level {level}: {done}/{n} transactions"
            )
        return totals

    def _count_chunk(self, counter: SupportCounter, plan, start: int, stop: int) -> np.ndarray:
        self.monitor.check_cancelled()
        return counter.count(plan, start, stop)


def find_frequent_itemsets(
        transactions: Sequence[Union[Transaction, Sequence[int]]],
        min_support: float,
        max_itemset_length: int = DEFAULT_MAX_ITEMSET_LENGTH,
        itemset_type: Union[ItemSetType, str] = ItemSetType.FREE,
        item_count: int = None,
        **kwargs
) -> ItemsetStore:
    """
    Find all frequent itemsets up to ``max_itemset_length``.

    The returned store holds every frequent itemset; ``store.get()`` applies
    the ``itemset_type`` filter.
    """
    search = AprioriSearch(min_support, max_itemset_length, itemset_type, **kwargs)
    return search.run(transactions, item_count)


@dataclass
class MiningResult:
    """Outcome of one completed mining run."""
    store: ItemsetStore
    itemset_type: ItemSetType = ItemSetType.FREE
    name_mapping: Tuple[Any, ...] = ()
    min_confidence: Optional[float] = None
    stats: Dict[str, Any] = field(default_factory=dict)
    logger: Optional[logging.Logger] = field(default=None, repr=False)
    _rules: Dict[float, List[AssociationRule]] = field(default_factory=dict, init=False, repr=False)

    def frequent_itemsets(self, itemset_type: Union[ItemSetType, str] = None) -> List[FrequentItemSet]:
        return self.store.get(itemset_type or self.itemset_type)

    def association_rules(self, min_confidence: float = None) -> List[AssociationRule]:
        if min_confidence is None:
            min_confidence = self.min_confidence if self.min_confidence is not None else DEFAULT_MIN_CONFIDENCE
        validate_min_confidence(min_confidence)
        if min_confidence not in self._rules:
            self._rules[min_confidence] = generate_rules(self.store, min_confidence, logger=self.logger)
        return list(self._rules[min_confidence])

    def itemsets_as_dicts(self, itemset_type=None) -> List[Dict[str, Any]]:
        return [s.to_dict(self.name_mapping) for s in self.frequent_itemsets(itemset_type)]

    def rules_as_dicts(self, min_confidence: float = None) -> List[Dict[str, Any]]:
        return [r.to_dict(self.name_mapping) for r in self.association_rules(min_confidence)]


def mine(
        transactions,
        min_support: float = DEFAULT_MIN_SUPPORT,
        max_itemset_length: int = DEFAULT_MAX_ITEMSET_LENGTH,
        itemset_type: Union[ItemSetType, str] = ItemSetType.FREE,
        min_confidence: float = None,
        item_count: int = None,
        name_mapping: Sequence[Any] = None,
        logger: logging.Logger = None,
        **kwargs
) -> MiningResult:
    """
    Run a complete mining pass.

    Args:
        transactions: EncodedTransactions or a sequence of transactions
        min_support: Minimum relative support in (0, 1]
        max_itemset_length: Longest itemset to search for
        itemset_type: FREE, CLOSED or MAXIMAL
        min_confidence: Default threshold for ``association_rules()``
        item_count: Number of items (inferred when omitted)
        name_mapping: Display names indexed by item id
        **kwargs: Passed to AprioriSearch (backend, monitor, n_jobs, ...)
    """
    validate_parameters(min_support, max_itemset_length, min_confidence)
    if hasattr(transactions, 'transactions') and hasattr(transactions, 'name_mapping'):
        encoded = transactions
        transactions = encoded.transactions
        item_count = encoded.item_count if item_count is None else item_count
        name_mapping = encoded.name_mapping if name_mapping is None else name_mapping

    start_time = time.time()
    search = AprioriSearch(min_support, max_itemset_length, itemset_type, logger=logger, **kwargs)
    store = search.run(transactions, item_count)

    stats = {
        'num_transactions': store.total_transactions,
        'num_frequent_itemsets': len(store),
        'max_found_length': store.max_length,
        'levels': search.level_stats,
        'execution_time': time.time() - start_time,
        'backend': search.backend,
        'itemset_type': search.itemset_type.name
    }
    return MiningResult(
        store=store,
        itemset_type=search.itemset_type,
        name_mapping=tuple(name_mapping) if name_mapping is not None else (),
        min_confidence=min_confidence,
        stats=stats,
        logger=logger
    )
