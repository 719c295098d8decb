"""
Apriori-based rule mining on transaction tables.

Wraps the level-wise search so it plugs into the experiment layer the same
way as any other HybridMiner: a DataFrame (or already encoded transactions)
goes in, lists of itemset/rule dicts and a stats dict come out.
"""
import logging
import time
from typing import Dict, List, Tuple, Any

from subgroup_miner.exceptions import ConfigurationError
from subgroup_miner.preprocessing.transaction_encoder import EncodedTransactions, TransactionEncoder
from subgroup_miner.rule_mining.apriori import (
    DEFAULT_MAX_CANDIDATES, MiningResult, mine, validate_parameters
)
from subgroup_miner.rule_mining.backends import BACKENDS
from subgroup_miner.rule_mining.base import HybridMiner, MiningInput
from subgroup_miner.rule_mining.itemset import ItemSetType
from subgroup_miner.rule_mining.progress import ExecutionMonitor


class AprioriMiner(HybridMiner):
    """
    Apriori miner with selectable candidate backend.

    Supports backends:
    - 'array': dense boolean transaction matrix (default, fast for dense data)
    - 'prefix_tree': candidate prefix tree (lean on wide, sparse data)

    Can generate:
    - Frequent itemsets (free, closed or maximal)
    - Association rules with a single consequent
    """

    def __init__(
        self,
        min_support: float = 0.9,
        min_confidence: float = 0.8,
        max_items: int = 10,
        itemset_type: str = 'FREE',
        backend: str = 'array',
        transaction_column: str = None,
        n_jobs: int = 1,
        max_candidates: int = DEFAULT_MAX_CANDIDATES,
        monitor: ExecutionMonitor = None,
        logger: logging.Logger = None,
        verbose: bool = False,
        **kwargs
    ):
        """
        Initialize Apriori miner.

        Args:
            min_support: Minimum support threshold in (0, 1]
            min_confidence: Minimum confidence threshold in [0, 1]
            max_items: Maximum number of items in an itemset
            itemset_type: 'FREE' (all), 'CLOSED' or 'MAXIMAL'
            backend: Candidate backend ('array', 'prefix_tree')
            transaction_column: Column holding the transactions (auto-guessed if None)
            n_jobs: Worker threads used to count supports
            max_candidates: Candidate limit per level before giving up
            monitor: Progress/cancellation collaborator
            logger: Logger injected into encoder and engine
            verbose: Show a progress bar
        """
        super().__init__(min_support, min_confidence, max_items, **kwargs)
        validate_parameters(min_support, max_items, min_confidence)
        self.itemset_type = ItemSetType.parse(itemset_type)
        self.backend = backend.lower()
        self.transaction_column = transaction_column
        self.n_jobs = n_jobs
        self.max_candidates = max_candidates
        self.logger = logger or logging.getLogger(__name__)
        self.monitor = monitor if monitor is not None else ExecutionMonitor(verbose=verbose)

        # Validate backend
        valid_backends = sorted(BACKENDS)
        if self.backend not in valid_backends:
            raise ConfigurationError(f"Backend must be one of {valid_backends}, got '{self.backend}'")

    def _prepare_data(self, data: MiningInput) -> EncodedTransactions:
        """
        Encode the transaction column unless the input is already encoded.

        Args:
            data: DataFrame or EncodedTransactions

        Returns:
            EncodedTransactions
        """
        if isinstance(data, EncodedTransactions):
            return data
        encoder = TransactionEncoder(
            column=self.transaction_column,
            monitor=self.monitor.sub_progress(0.5),
            logger=self.logger
        )
        return encoder.encode(data)

    def run(self, data: MiningInput) -> MiningResult:
        """Encode and search; the returned result serves itemsets and rules."""
        self.monitor.reset()
        encoded = self._prepare_data(data)
        search_monitor = self.monitor.sub_progress(1.0 - self.monitor.fraction)
        return mine(
            encoded,
            min_support=self.min_support,
            max_itemset_length=self.max_items,
            itemset_type=self.itemset_type,
            min_confidence=self.min_confidence,
            backend=self.backend,
            n_jobs=self.n_jobs,
            max_candidates=self.max_candidates,
            monitor=search_monitor,
            logger=self.logger
        )

    def mine_itemsets(self, data: MiningInput) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        """
        Mine frequent itemsets of the configured type.

        Args:
            data: DataFrame with a transaction column, or encoded transactions

        Returns:
            Tuple of (itemsets, stats)
        """
        start_time = time.time()

        result = self.run(data)
        itemsets = result.itemsets_as_dicts()

        execution_time = time.time() - start_time

        stats = {
            'num_itemsets': len(itemsets),
            'num_frequent_itemsets': result.stats['num_frequent_itemsets'],
            'num_transactions': result.stats['num_transactions'],
            'execution_time': execution_time,
            'average_support': sum(i['support'] for i in itemsets) / len(itemsets) if itemsets else 0.0,
            'algorithm': 'Apriori',
            'backend': self.backend,
            'itemset_type': self.itemset_type.name,
            'mode': 'itemsets'
        }

        return itemsets, stats

    def mine_rules(self, data: MiningInput) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        """
        Mine single-consequent association rules.

        Args:
            data: DataFrame with a transaction column, or encoded transactions

        Returns:
            Tuple of (rules, stats)
        """
        start_time = time.time()

        result = self.run(data)
        rules = result.rules_as_dicts(self.min_confidence)

        execution_time = time.time() - start_time

        stats = {
            'num_rules': len(rules),
            'num_transactions': result.stats['num_transactions'],
            'execution_time': execution_time,
            'average_support': sum(r['support'] for r in rules) / len(rules) if rules else 0.0,
            'average_confidence': sum(r['confidence'] for r in rules) / len(rules) if rules else 0.0,
            'average_lift': sum(r['lift'] for r in rules) / len(rules) if rules else 0.0,
            'average_zhangs_metric': sum(r['zhangs_metric'] for r in rules) / len(rules) if rules else 0.0,
            'algorithm': 'Apriori',
            'backend': self.backend,
            'mode': 'rules'
        }

        return rules, stats

    def __repr__(self):
        return (f"AprioriMiner(backend='{self.backend}', min_support={self.min_support}, "
                f"min_confidence={self.min_confidence}, max_items={self.max_items}, "
                f"itemset_type={self.itemset_type.name})")
