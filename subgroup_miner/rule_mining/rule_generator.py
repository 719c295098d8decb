"""Single-consequent association rules from a frozen itemset store."""
import logging
from typing import List

from subgroup_miner.exceptions import InternalInvariantViolation
from subgroup_miner.rule_mining.itemset import AssociationRule
from subgroup_miner.rule_mining.itemset_store import ItemsetStore

_logger = logging.getLogger(__name__)


def generate_rules(
        store: ItemsetStore,
        min_confidence: float,
        logger: logging.Logger = None,
        monitor=None
) -> List[AssociationRule]:
    """
    Derive ``I \\ {x} -> {x}`` for every stored itemset I with at least two
    items and every x in I, keeping rules with confidence >= min_confidence.

    Rules are ordered by their source itemset (length, items) and then by
    the consequent item. Antecedent and consequent are looked up in the
    store; by downward closure both must be present.

    Raises:
        InternalInvariantViolation: if a subset of a stored itemset is missing
    """
    log = logger or _logger
    rules = []
    for itemset in store:
        if len(itemset) < 2:
            continue
        if monitor is not None:
            monitor.check_cancelled()
        for item in itemset.items:
            antecedent = store.get_itemset(itemset.without(item))
            consequent = store.get_itemset((item,))
            if antecedent is None or consequent is None:
                missing = itemset.without(item) if antecedent is None else (item,)
                log.error("Itemset %s (support %.6f, count %d) present but subset %s missing from store %r",
                          itemset.items, itemset.support, itemset.count, missing, store)
                raise InternalInvariantViolation(
                    f"Subset {missing} of frequent itemset {itemset.items} is not in the store")

            confidence = itemset.count / antecedent.count
            if confidence < min_confidence:
                continue
            lift = confidence / consequent.support
            rules.append(AssociationRule(
                antecedent=antecedent,
                consequent=consequent,
                support=itemset.support,
                confidence=confidence,
                lift=lift
            ))
    log.debug("generated %d rules with confidence >= %s", len(rules), min_confidence)
    return rules
