"""
Frequent itemset and association rule mining with the Apriori algorithm.
"""
from subgroup_miner.exceptions import (
    MiningError,
    ConfigurationError,
    CancellationError,
    ResourceExhausted,
    InternalInvariantViolation
)
from subgroup_miner.rule_mining.itemset import ItemSetType, Transaction, FrequentItemSet, AssociationRule
from subgroup_miner.rule_mining.itemset_store import ItemsetStore
from subgroup_miner.rule_mining.progress import ExecutionMonitor
from subgroup_miner.rule_mining.apriori import find_frequent_itemsets, mine, MiningResult
from subgroup_miner.rule_mining.rule_generator import generate_rules
from subgroup_miner.rule_mining.apriori_miner import AprioriMiner
from subgroup_miner.preprocessing.bitvector import BitVector
from subgroup_miner.preprocessing.bitvector_generator import BitVectorGenerator
from subgroup_miner.preprocessing.transaction_encoder import TransactionEncoder, EncodedTransactions

__version__ = '0.1.0'

__all__ = [
    'MiningError', 'ConfigurationError', 'CancellationError', 'ResourceExhausted', 'InternalInvariantViolation',
    'ItemSetType', 'Transaction', 'FrequentItemSet', 'AssociationRule',
    'ItemsetStore', 'ExecutionMonitor',
    'find_frequent_itemsets', 'mine', 'MiningResult', 'generate_rules',
    'AprioriMiner',
    'BitVector', 'BitVectorGenerator',
    'TransactionEncoder', 'EncodedTransactions'
]
