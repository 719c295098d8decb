import logging
import time
import pandas as pd
from datetime import datetime
from pathlib import Path
from typing import List, Dict, Any, Tuple

from subgroup_miner.preprocessing.bitvector_generator import BitVectorGenerator
from subgroup_miner.rule_mining.apriori_miner import AprioriMiner
from subgroup_miner.rule_mining.progress import ExecutionMonitor
from subgroup_miner.postprocessing.rule import filter_rules, filter_itemsets, itemset_stats, sort_itemsets

from .config import DataConfig, BitVectorConfig, RuleMiningConfig, FilterConfig

ITEMSET_METRICS = ('support', 'count', 'length')


def load_data(config: DataConfig) -> pd.DataFrame:
    path = Path(config.path)
    if path.suffix == '.csv':
        df = pd.read_csv(path, sep=config.sep)
    elif path.suffix == '.parquet':
        df = pd.read_parquet(path)
    else:
        raise ValueError(f"Unsupported file format: {path.suffix}")

    if config.item_separator and config.transaction_column:
        df[config.transaction_column] = split_items(df[config.transaction_column], config.item_separator)
    return df


def split_items(series: pd.Series, separator: str) -> pd.Series:
    """Turn delimited strings into item lists; missing cells stay missing."""
    def split(value):
        if not isinstance(value, str):
            return value
        return [item.strip() for item in value.split(separator) if item.strip()]
    return series.map(split).astype(object)


def preprocess_data(df: pd.DataFrame, config: BitVectorConfig = None) -> pd.DataFrame:
    if config is None:
        return df
    generator = BitVectorGenerator(**config.to_dict())
    return generator.fit_transform(df)


def mining_column(data_config: DataConfig, bit_vectors: BitVectorConfig = None) -> str:
    """Column to mine: the generated bit vectors when configured, else the transaction column."""
    if bit_vectors is None:
        return data_config.transaction_column
    return BitVectorGenerator(**bit_vectors.to_dict()).output_column


def create_miner(
    config: RuleMiningConfig,
    transaction_column: str = None,
    monitor: ExecutionMonitor = None,
    logger: logging.Logger = None
) -> AprioriMiner:
    cfg = config.miner_config
    return AprioriMiner(
        min_support=cfg.min_support,
        min_confidence=cfg.min_confidence,
        max_items=cfg.max_itemset_length,
        itemset_type=cfg.itemset_type,
        backend=cfg.backend,
        transaction_column=transaction_column,
        n_jobs=cfg.n_jobs,
        max_candidates=cfg.max_candidates,
        monitor=monitor,
        logger=logger
    )


def apply_filters(
    data: List[Dict],
    filters: List[FilterConfig],
    mode: str = 'rules'
) -> List[Dict]:
    if not filters:
        return data

    result = data
    filter_func = filter_rules if mode == 'rules' else filter_itemsets

    for f in filters:
        # rule metrics do not apply to itemsets
        if mode == 'itemsets' and f.metric not in ITEMSET_METRICS:
            continue
        result = filter_func(result, criterion=f.metric, threshold=f.threshold)

    return result


def run_rule_mining(
    data: pd.DataFrame,
    config: RuleMiningConfig,
    transaction_column: str = None,
    monitor: ExecutionMonitor = None,
    logger: logging.Logger = None
) -> Tuple[List[Dict], Dict[str, Any]]:
    """
    Mine itemsets and/or rules in one run.

    Errors of the mining run (see subgroup_miner.exceptions) propagate
    unchanged; nothing is returned for a failed run.
    """
    miner = create_miner(config, transaction_column, monitor, logger)
    mode = config.mode
    if mode not in ('itemsets', 'rules', 'both'):
        raise ValueError(f"Unknown mode: {mode}")

    start_time = time.time()
    mining_result = miner.run(data)

    results = []
    stats = {'mining': mining_result.stats}

    if mode in ['itemsets', 'both']:
        itemsets = mining_result.itemsets_as_dicts()
        itemsets = apply_filters(itemsets, config.filters, mode='itemsets')
        itemsets = sort_itemsets(itemsets, config.sort_by)
        results.extend(itemsets)
        stats['itemsets'] = itemset_stats(itemsets)
        stats['itemsets']['count'] = len(itemsets)
        stats['itemsets']['itemset_type'] = mining_result.itemset_type.name

    if mode in ['rules', 'both']:
        rules = mining_result.rules_as_dicts(config.miner_config.min_confidence)
        rules = apply_filters(rules, config.filters, mode='rules')
        results.extend(rules)
        stats['rules'] = {
            'count': len(rules),
            'average_confidence': sum(r['confidence'] for r in rules) / len(rules) if rules else 0.0,
            'average_lift': sum(r['lift'] for r in rules) / len(rules) if rules else 0.0
        }

    stats['execution_time'] = time.time() - start_time
    return results, stats


def generate_output_filename(
    experiment_name: str,
    mode: str,
    dataset_name: str
) -> str:
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    return f"{timestamp}_{experiment_name}_apriori_{mode}_{dataset_name}"
