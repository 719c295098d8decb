from enum import Enum
from typing import Any, Dict, List, Sequence

import pandas as pd

from subgroup_miner.exceptions import ConfigurationError


def filter_rules(rules, criterion: str, threshold: float):
    """
    Filters rules based on a criterion >= threshold.

    Args:
        rules: List of rule dictionaries
        criterion: The rule metric to filter on (e.g., 'support', 'confidence', 'lift')
        threshold: Minimum value for the criterion (inclusive)

    Returns:
        List of rules meeting the criterion
    """
    return [rule for rule in rules if rule.get(criterion, float("-inf")) >= threshold]


def _normalize_itemset(val):
    """Convert a rule side to a set of lower-cased strings for matching."""
    if val is None:
        return set()
    if isinstance(val, str):
        return {val.lower()}
    if isinstance(val, (list, tuple, set, frozenset)):
        return {str(item).lower() for item in val}
    return {str(val).lower()}


def _matches_patterns(itemset, patterns, match_any):
    if not patterns:
        return True
    normalized = _normalize_itemset(itemset)
    patterns_lower = [str(p).lower() for p in patterns]
    check = any if match_any else all
    return check(any(p in item for item in normalized) for p in patterns_lower)


def _excludes_patterns(itemset, patterns):
    if not patterns:
        return True
    normalized = _normalize_itemset(itemset)
    return not any(any(str(p).lower() in item for item in normalized) for p in patterns)


def filter_rules_by_pattern(
    rules,
    antecedent_contains: list = None,
    consequent_contains: list = None,
    antecedent_excludes: list = None,
    consequent_excludes: list = None,
    match_any: bool = False
):
    """
    Filter rules by antecedent/consequent patterns (case-insensitive substrings
    of the item names).

    Args:
        rules: List of rule dictionaries
        antecedent_contains: List of patterns that must appear in antecedent
        consequent_contains: List of patterns that must appear in consequent
        antecedent_excludes: List of patterns that must NOT appear in antecedent
        consequent_excludes: List of patterns that must NOT appear in consequent
        match_any: If True, match if ANY pattern matches. If False, ALL must match.

    Returns:
        List of filtered rules
    """
    filtered = []
    for rule in rules:
        ant = rule.get('antecedents')
        cons = rule.get('consequent')

        if (_matches_patterns(ant, antecedent_contains, match_any)
                and _matches_patterns(cons, consequent_contains, match_any)
                and _excludes_patterns(ant, antecedent_excludes)
                and _excludes_patterns(cons, consequent_excludes)):
            filtered.append(rule)

    return filtered


def filter_rules_by_consequent(rules, targets: list, match_any: bool = True):
    """Keep rules whose consequent matches any (or all) target patterns."""
    return filter_rules_by_pattern(rules, consequent_contains=targets, match_any=match_any)


def filter_rules_by_antecedent(rules, patterns: list, match_any: bool = True):
    """Keep rules whose antecedent matches any (or all) patterns."""
    return filter_rules_by_pattern(rules, antecedent_contains=patterns, match_any=match_any)


def filter_itemsets(itemsets, criterion: str = 'support', threshold: float = 0.0):
    """
    Filters frequent itemsets based on a criterion >= threshold.

    Args:
        itemsets: List of itemset dictionaries (each with 'items' and 'support' keys)
        criterion: The metric to filter on (default: 'support')
        threshold: Minimum value for the criterion (inclusive)

    Returns:
        List of itemsets meeting the criterion
    """
    return [itemset for itemset in itemsets if itemset.get(criterion, float("-inf")) >= threshold]


def itemset_stats(itemsets) -> Dict[str, Any]:
    count = len(itemsets)
    if count == 0:
        return {"num_itemsets": 0, "average_support": 0.0}

    avg_support = sum(item.get("support", 0) for item in itemsets) / count
    return {
        "num_itemsets": count,
        "average_support": round(avg_support, 3),
    }


class Sorter(Enum):
    """Orderings offered for the frequent itemset table."""
    NONE = 'NONE'
    SUPPORT_ASC = 'SUPPORT_ASC'
    SUPPORT_DESC = 'SUPPORT_DESC'
    LENGTH_ASC = 'LENGTH_ASC'
    LENGTH_DESC = 'LENGTH_DESC'

    @classmethod
    def parse(cls, value) -> 'Sorter':
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).upper()]
        except KeyError:
            raise ConfigurationError(f"Sort order must be one of {[s.name for s in cls]}, got '{value}'")


def sort_itemsets(itemsets: List[Dict[str, Any]], sort_by='NONE') -> List[Dict[str, Any]]:
    """
    Sort itemset dictionaries; ties keep their canonical order (stable sort).
    """
    sorter = Sorter.parse(sort_by)
    if sorter is Sorter.NONE:
        return list(itemsets)
    if sorter in (Sorter.SUPPORT_ASC, Sorter.SUPPORT_DESC):
        key = lambda s: s['support']
    else:
        key = lambda s: len(s['items'])
    reverse = sorter in (Sorter.SUPPORT_DESC, Sorter.LENGTH_DESC)
    return sorted(itemsets, key=key, reverse=reverse)


def itemsets_to_frame(itemsets: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    """Frequent itemset table: one row per itemset with its support and item names."""
    rows = [{'Support(0-1):': s['support'], 'Items': frozenset(s['items'])} for s in itemsets]
    index = [f"item set {i}" for i in range(len(rows))]
    return pd.DataFrame(rows, index=index, columns=['Support(0-1):', 'Items'])


def rules_to_frame(rules: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    """Association rule table in 'consequent <--- antecedent items' layout."""
    columns = ['Support', 'Confidence', 'Lift', 'Consequent', 'implies', 'Items']
    rows = [{
        'Support': r['support'],
        'Confidence': r['confidence'],
        'Lift': r['lift'],
        'Consequent': r['consequent'],
        'implies': '<---',
        'Items': frozenset(r['antecedents'])
    } for r in rules]
    index = [f"rule{i}" for i in range(len(rows))]
    return pd.DataFrame(rows, index=index, columns=columns)
