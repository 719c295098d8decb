import math

import pytest

from subgroup_miner.exceptions import InternalInvariantViolation
from subgroup_miner.rule_mining.apriori import find_frequent_itemsets, mine
from subgroup_miner.rule_mining.itemset import FrequentItemSet
from subgroup_miner.rule_mining.itemset_store import ItemsetStore
from subgroup_miner.rule_mining.rule_generator import generate_rules


def test_scenario_b(scenario):
    store = find_frequent_itemsets(scenario, min_support=0.5)
    rules = generate_rules(store, min_confidence=0.6)
    found = {(r.antecedent.items, r.consequent_item): r for r in rules}

    assert set(found) == {((1,), 0), ((0,), 1), ((2,), 1), ((1,), 2)}
    a_to_b = found[((0,), 1)]
    assert a_to_b.confidence == pytest.approx(0.5 / 0.75)
    assert a_to_b.support == 0.5
    assert a_to_b.lift == pytest.approx((0.5 / 0.75) / 0.75)
    assert found[((1,), 0)].confidence == pytest.approx(0.5 / 0.75)
    assert found[((2,), 1)].confidence == 1.0


def test_rule_order(scenario):
    store = find_frequent_itemsets(scenario, min_support=0.5)
    rules = generate_rules(store, min_confidence=0.6)
    assert [(r.antecedent.items, r.consequent_item) for r in rules] == [
        ((1,), 0), ((0,), 1), ((2,), 1), ((1,), 2)
    ]


def test_confidence_threshold_is_inclusive(scenario):
    store = find_frequent_itemsets(scenario, min_support=0.5)
    assert len(generate_rules(store, min_confidence=2 / 3)) == 4
    assert [r.consequent_item for r in generate_rules(store, min_confidence=0.7)] == [1]


def test_rule_identities(random_transactions):
    result = mine(random_transactions, min_support=0.1, max_itemset_length=4, min_confidence=0.3)
    rules = result.association_rules()
    assert rules
    for rule in rules:
        itemset = result.store.get_itemset(rule.antecedent.items + (rule.consequent_item,))
        assert itemset is not None
        assert rule.support == itemset.support
        assert rule.support >= 0.1
        assert rule.confidence >= 0.3
        assert rule.confidence == pytest.approx(rule.support / rule.antecedent.support)
        assert rule.lift == pytest.approx(rule.confidence / rule.consequent.support)
        assert rule.consequent_item not in rule.antecedent


def test_zero_confidence_yields_every_rule(random_transactions):
    store = find_frequent_itemsets(random_transactions, 0.15, 3)
    rules = generate_rules(store, min_confidence=0.0)
    assert len(rules) == sum(len(s) for s in store if len(s) >= 2)


def test_single_items_produce_no_rules():
    store = ItemsetStore([FrequentItemSet((0,), 0.9, 9), FrequentItemSet((1,), 0.8, 8)]).freeze()
    assert generate_rules(store, min_confidence=0.0) == []


def test_missing_subset_is_an_invariant_violation():
    store = ItemsetStore([FrequentItemSet((1,), 0.8, 8), FrequentItemSet((0, 1), 0.5, 5)]).freeze()
    with pytest.raises(InternalInvariantViolation):
        generate_rules(store, min_confidence=0.0)


def test_rule_metrics():
    antecedent = FrequentItemSet((0,), 0.5, 5)
    consequent = FrequentItemSet((1,), 0.4, 4)
    store = ItemsetStore([antecedent, consequent, FrequentItemSet((0, 1), 0.4, 4)]).freeze()
    rule = next(r for r in generate_rules(store, 0.0) if r.consequent_item == 1)

    assert rule.confidence == pytest.approx(0.8)
    assert rule.lift == pytest.approx(2.0)
    assert rule.leverage == pytest.approx(0.4 - 0.5 * 0.4)
    assert rule.conviction == pytest.approx(0.6 / 0.2)
    assert rule.zhangs_metric == pytest.approx((0.8 - 0.4) / 0.6)

    exact = next(r for r in generate_rules(store, 0.0) if r.consequent_item == 0)
    assert exact.confidence == 1.0
    assert math.isinf(exact.conviction)


def test_rules_as_dicts_use_names(scenario):
    result = mine(scenario, min_support=0.5, min_confidence=0.6, name_mapping=('A', 'B', 'C'))
    first = result.rules_as_dicts()[0]
    assert first['antecedents'] == ['B']
    assert first['consequent'] == 'A'
    assert first['antecedent_ids'] == [1]
    assert first['consequent_id'] == 0
    assert str(result.association_rules()[0]).startswith("{1} -> {0}")


def test_rules_are_cached_per_threshold(scenario):
    result = mine(scenario, min_support=0.5, min_confidence=0.6)
    assert result.association_rules() == result.association_rules(0.6)
    assert len(result.association_rules(0.9)) == 1
