"""
Subgroup Mining Experiment: Market Baskets

Mines frequent itemsets (free, closed, maximal) and single-consequent rules
from a basket file whose item column holds ';'-separated product names.
"""
import json
import logging
from pathlib import Path
from datetime import datetime

from subgroup_miner.exceptions import MiningError
from subgroup_miner.experiments.base import load_data, mining_column, preprocess_data, run_rule_mining
from subgroup_miner.experiments.config import (
    DataConfig, AprioriConfig, RuleMiningConfig, FilterConfig
)
from subgroup_miner.postprocessing.rule import itemsets_to_frame, rules_to_frame
from subgroup_miner.rule_mining.progress import ExecutionMonitor
from subgroup_miner.utils.log_setup import setup_logging

logger = setup_logging(logging.INFO)

# =============================================================================
# CONFIGURATION
# =============================================================================

DATA = DataConfig(
    path="../../data/raw/baskets.csv",
    name="baskets",
    transaction_column="items",
    item_separator=";"
)
OUTPUT_DIR = "../../out/subgroup_mining"

# Set to a BitVectorConfig to mine numeric columns instead of a basket column
BIT_VECTORS = None

ITEMSET_TYPES = ['FREE', 'CLOSED', 'MAXIMAL']
MIN_SUPPORTS = [0.1, 0.05]

APRIORI_CONFIG = {
    'max_itemset_length': 5,
    'min_confidence': 0.6,
    'backend': 'array',
    'n_jobs': 1
}

# Filter thresholds (rules)
MIN_LIFT = 1.0


# =============================================================================
# EXPERIMENT
# =============================================================================

def run_experiment():
    print("=" * 70)
    print("SUBGROUP MINING EXPERIMENT")
    print("=" * 70)

    # Load data
    print("\n[1] Loading data...")
    df = load_data(DATA)
    df = preprocess_data(df, BIT_VECTORS)
    transaction_column = mining_column(DATA, BIT_VECTORS)
    print(f"  Shape: {df.shape}")

    all_results = []

    for min_support in MIN_SUPPORTS:
        for itemset_type in ITEMSET_TYPES:
            print(f"\n{'=' * 70}")
            print(f"APRIORI: {itemset_type} itemsets, min_support={min_support}")
            print("=" * 70)

            config = RuleMiningConfig(
                miner_config=AprioriConfig(min_support=min_support, itemset_type=itemset_type, **APRIORI_CONFIG),
                mode='both',
                filters=[FilterConfig(metric='lift', threshold=MIN_LIFT)],
                sort_by='SUPPORT_DESC'
            )
            monitor = ExecutionMonitor(verbose=True, desc=f"{itemset_type} @ {min_support}")

            try:
                results, stats = run_rule_mining(
                    df, config, transaction_column=transaction_column, monitor=monitor, logger=logger
                )
                itemsets = [r for r in results if 'items' in r]
                rules = [r for r in results if 'consequent' in r]
                print(f"    Mined: {len(itemsets)} itemsets, {len(rules)} rules")

                all_results.append({
                    'min_support': min_support,
                    'itemset_type': itemset_type,
                    'itemsets': itemsets,
                    'rules': rules,
                    'stats': stats
                })

            except MiningError as e:
                logger.error("Mining failed for %s @ %s: %s", itemset_type, min_support, e)
                all_results.append({
                    'min_support': min_support,
                    'itemset_type': itemset_type,
                    'itemsets': [],
                    'rules': [],
                    'stats': {'error': str(e), 'error_type': type(e).__name__}
                })
            finally:
                monitor.close()

    # Save results
    print(f"\n{'=' * 70}")
    print("SAVING RESULTS")
    print("=" * 70)

    output_path = Path(OUTPUT_DIR)
    output_path.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

    summary_data = []
    for result in all_results:
        prefix = f"{timestamp}_{DATA.name}_{result['itemset_type'].lower()}_{result['min_support']}"
        if result['itemsets']:
            itemsets_to_frame(result['itemsets']).to_csv(output_path / f"{prefix}_itemsets.csv")
        if result['rules']:
            rules_to_frame(result['rules']).to_csv(output_path / f"{prefix}_rules.csv")

        summary_data.append({
            'min_support': result['min_support'],
            'itemset_type': result['itemset_type'],
            'num_itemsets': len(result['itemsets']),
            'num_rules': len(result['rules']),
            'avg_confidence': sum(r.get('confidence', 0) for r in result['rules']) / len(result['rules']) if result[
                'rules'] else 0,
            'avg_lift': sum(r.get('lift', 0) for r in result['rules']) / len(result['rules']) if result[
                'rules'] else 0,
            'error': result['stats'].get('error')
        })

    params = {
        'data': DATA.to_dict(),
        'itemset_types': ITEMSET_TYPES,
        'min_supports': MIN_SUPPORTS,
        'min_lift': MIN_LIFT,
        **APRIORI_CONFIG,
        'timestamp': datetime.now().isoformat()
    }

    with open(output_path / f"{timestamp}_{DATA.name}_summary.json", 'w') as f:
        json.dump({'parameters': params, 'summary': summary_data}, f, indent=2)

    print(f"  Saved to: {output_path}")
    print("\nDone!")


if __name__ == '__main__':
    run_experiment()
