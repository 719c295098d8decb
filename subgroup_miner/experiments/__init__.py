from .config import (
    DataConfig,
    BitVectorConfig,
    AprioriConfig,
    RuleMiningConfig,
    FilterConfig,
    ExperimentConfig
)
from .base import (
    load_data,
    split_items,
    preprocess_data,
    run_rule_mining,
    create_miner,
    apply_filters
)

__all__ = [
    'DataConfig',
    'BitVectorConfig',
    'AprioriConfig',
    'RuleMiningConfig',
    'FilterConfig',
    'ExperimentConfig',
    'load_data',
    'split_items',
    'preprocess_data',
    'run_rule_mining',
    'create_miner',
    'apply_filters'
]
