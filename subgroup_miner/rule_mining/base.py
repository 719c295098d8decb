"""
Base interfaces for rule mining algorithms.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Tuple, Any, Union
import pandas as pd

from subgroup_miner.preprocessing.transaction_encoder import EncodedTransactions

MiningInput = Union[pd.DataFrame, EncodedTransactions]


class FrequentItemsetMiner(ABC):
    """
    Base class for frequent itemset mining algorithms.

    These algorithms discover frequent co-occurring items without forming
    rules (no antecedent -> consequent structure).
    """

    def __init__(self, min_support: float = 0.9, **kwargs):
        self.min_support = min_support
        self.config = kwargs

    @abstractmethod
    def mine_itemsets(self, data: MiningInput) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        """
        Mine frequent itemsets from data.

        Args:
            data: DataFrame with a transaction column, or already encoded transactions

        Returns:
            Tuple of (itemsets, stats) where:
                itemsets: List of dicts with keys 'items' (list of item names) and 'support' (float)
                stats: Dict with mining statistics (execution_time, num_itemsets, etc.)
        """
        pass


class AssociationRuleMiner(ABC):
    """
    Base class for association rule mining algorithms.

    These algorithms discover rules in the form: antecedent -> consequent
    with quality metrics (support, confidence, lift).
    """

    def __init__(self, min_support: float = 0.9, min_confidence: float = 0.8, **kwargs):
        self.min_support = min_support
        self.min_confidence = min_confidence
        self.config = kwargs

    @abstractmethod
    def mine_rules(self, data: MiningInput) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        """
        Mine association rules from data.

        Args:
            data: DataFrame with a transaction column, or already encoded transactions

        Returns:
            Tuple of (rules, stats) where:
                rules: List of dicts with keys:
                    - 'antecedents': list of item names (left-hand side)
                    - 'consequent': item name (right-hand side)
                    - 'support': float
                    - 'confidence': float
                    - 'lift': float
                    - Other quality metrics
                stats: Dict with mining statistics
        """
        pass


class HybridMiner(FrequentItemsetMiner, AssociationRuleMiner):
    """
    Base class for algorithms that can produce both frequent itemsets and association rules.

    max_items limits the total number of items of an itemset, and therefore
    of antecedent plus consequent of a rule.
    """

    def __init__(
        self,
        min_support: float = 0.9,
        min_confidence: float = 0.8,
        max_items: int = 10,
        **kwargs
    ):
        """
        Initialize hybrid miner with both support and confidence thresholds.

        Args:
            min_support: Minimum support threshold
            min_confidence: Minimum confidence threshold
            max_items: Maximum number of items in an itemset
            **kwargs: Additional configuration
        """
        AssociationRuleMiner.__init__(self, min_support, min_confidence, **kwargs)
        self.max_items = max_items

    @abstractmethod
    def mine_itemsets(self, data: MiningInput) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        """Mine frequent itemsets."""
        pass

    @abstractmethod
    def mine_rules(self, data: MiningInput) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        """Mine association rules."""
        pass
