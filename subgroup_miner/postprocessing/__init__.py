from .rule import (
    filter_rules,
    filter_rules_by_pattern,
    filter_rules_by_consequent,
    filter_rules_by_antecedent,
    filter_itemsets,
    itemset_stats,
    Sorter,
    sort_itemsets,
    itemsets_to_frame,
    rules_to_frame
)

__all__ = [
    'filter_rules', 'filter_rules_by_pattern', 'filter_rules_by_consequent', 'filter_rules_by_antecedent',
    'filter_itemsets', 'itemset_stats',
    'Sorter', 'sort_itemsets',
    'itemsets_to_frame', 'rules_to_frame'
]
