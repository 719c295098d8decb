import itertools
import threading

import pytest

from subgroup_miner.exceptions import CancellationError, ConfigurationError, ResourceExhausted
from subgroup_miner.preprocessing.transaction_encoder import EncodedTransactions
from subgroup_miner.rule_mining.apriori import (
    AprioriSearch, candidate_upper_bound, find_frequent_itemsets, generate_candidates, mine,
    normalize_transactions
)
from subgroup_miner.rule_mining.itemset import ItemSetType, Transaction
from subgroup_miner.rule_mining.progress import ExecutionMonitor


def count_containing(transactions, items):
    wanted = set(items)
    return sum(1 for t in transactions if wanted.issubset(t))


def as_counts(store):
    return {s.items: s.count for s in store}


def test_scenario_a_free_itemsets(scenario):
    store = find_frequent_itemsets(scenario, min_support=0.5)
    supports = {s.items: s.support for s in store.get()}
    # {B,C} occurs in two of four transactions as well
    assert supports == {(0,): 0.75, (1,): 0.75, (2,): 0.5, (0, 1): 0.5, (1, 2): 0.5}
    assert (0, 2) not in store
    assert (0, 1, 2) not in store


def test_scenario_c_max_length_one(scenario):
    store = find_frequent_itemsets(scenario, min_support=0.5, max_itemset_length=1)
    assert [s.items for s in store.get()] == [(0,), (1,), (2,)]


def test_scenario_d_support_one_is_empty(scenario):
    result = mine(scenario, min_support=1.0, min_confidence=0.0)
    assert result.frequent_itemsets() == []
    assert result.association_rules() == []
    assert result.stats['num_frequent_itemsets'] == 0
    assert result.stats['max_found_length'] == 0


def test_support_definition(random_transactions):
    store = find_frequent_itemsets(random_transactions, min_support=0.15, max_itemset_length=4)
    n = len(random_transactions)
    for itemset in store:
        assert itemset.count == count_containing(random_transactions, itemset.items)
        assert itemset.support == itemset.count / n
        assert itemset.support >= 0.15


def test_completeness(random_transactions):
    store = find_frequent_itemsets(random_transactions, min_support=0.15, max_itemset_length=3)
    n = len(random_transactions)
    for size in (1, 2, 3):
        for items in itertools.combinations(range(8), size):
            frequent = count_containing(random_transactions, items) / n >= 0.15
            assert (items in store) == frequent


def test_downward_closure(random_transactions):
    store = find_frequent_itemsets(random_transactions, min_support=0.08, max_itemset_length=5)
    assert store.max_length >= 3
    for itemset in store:
        if len(itemset) < 2:
            continue
        for item in itemset.items:
            assert itemset.without(item) in store


def test_generate_candidates_prunes_infrequent_subsets():
    frequent = [(0, 1), (0, 2), (1, 2), (1, 3)]
    assert generate_candidates(frequent) == [(0, 1, 2)]
    assert candidate_upper_bound(frequent) == 2


def test_generate_candidates_from_single_items():
    assert generate_candidates([(2,), (0,), (1,)]) == [(0, 1), (0, 2), (1, 2)]


def test_generate_candidates_limit():
    with pytest.raises(ResourceExhausted):
        generate_candidates([(0,), (1,), (2,)], max_candidates=2)


def test_idempotence(random_transactions):
    first = find_frequent_itemsets(random_transactions, min_support=0.2, max_itemset_length=4)
    second = find_frequent_itemsets(random_transactions, min_support=0.2, max_itemset_length=4)
    assert [(s.items, s.count) for s in first] == [(s.items, s.count) for s in second]


def test_backends_agree(random_transactions):
    array = find_frequent_itemsets(random_transactions, 0.12, 5, backend='array')
    tree = find_frequent_itemsets(random_transactions, 0.12, 5, backend='prefix_tree')
    assert as_counts(array) == as_counts(tree)


@pytest.mark.parametrize("backend", ['array', 'prefix_tree'])
def test_parallel_chunked_counting_agrees(random_transactions, backend):
    serial = find_frequent_itemsets(random_transactions, 0.12, 5, backend=backend)
    parallel = find_frequent_itemsets(random_transactions, 0.12, 5, backend=backend, n_jobs=2, chunk_size=7)
    assert as_counts(serial) == as_counts(parallel)


def test_itemset_type_views(scenario):
    closed = find_frequent_itemsets(scenario, 0.5, itemset_type='CLOSED')
    maximal = find_frequent_itemsets(scenario, 0.5, itemset_type=ItemSetType.MAXIMAL)
    assert [s.items for s in closed.get()] == [(0,), (1,), (0, 1), (1, 2)]
    assert [s.items for s in maximal.get()] == [(0, 1), (1, 2)]


def test_level_stats(scenario):
    search = AprioriSearch(min_support=0.5)
    search.run(scenario)
    assert search.level_stats[0] == {'level': 1, 'candidates': 3, 'frequent': 3}
    assert search.level_stats[1] == {'level': 2, 'candidates': 3, 'frequent': 2}


@pytest.mark.parametrize("kwargs", [
    {'min_support': 0},
    {'min_support': 1.5},
    {'min_support': 0.5, 'max_itemset_length': 0},
    {'min_support': 0.5, 'max_itemset_length': True},
    {'min_support': 0.5, 'min_confidence': 1.2},
    {'min_support': True},
    {'min_support': 0.5, 'min_confidence': True},
    {'min_support': 0.5, 'itemset_type': 'dense'},
    {'min_support': 0.5, 'backend': 'bitmap'},
])
def test_invalid_configuration(scenario, kwargs):
    with pytest.raises(ConfigurationError):
        mine(scenario, **kwargs)


def test_empty_transaction_set():
    with pytest.raises(ConfigurationError):
        find_frequent_itemsets([], min_support=0.5)


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        find_frequent_itemsets([], min_support=0.5)


def test_normalize_transactions():
    transactions, item_count = normalize_transactions([[2, 0, 2], []])
    assert transactions == [Transaction(0, (0, 2)), Transaction(1, ())]
    assert item_count == 3


@pytest.mark.parametrize("transactions, item_count", [
    ([[-1, 2]], None),
    ([[0, 3]], 2),
    ([Transaction(0, (2, 1))], None),
])
def test_normalize_transactions_rejects_bad_ids(transactions, item_count):
    with pytest.raises(ConfigurationError):
        normalize_transactions(transactions, item_count)


def test_cancelled_before_start(scenario):
    event = threading.Event()
    event.set()
    with pytest.raises(CancellationError):
        find_frequent_itemsets(scenario, 0.5, monitor=ExecutionMonitor(cancel_event=event))


def test_cancelled_during_scan(random_transactions):
    calls = []

    def cancel_after_first(fraction, message):
        calls.append(fraction)
        monitor.cancel()

    monitor = ExecutionMonitor(progress_callback=cancel_after_first)
    with pytest.raises(CancellationError):
        find_frequent_itemsets(random_transactions, 0.1, monitor=monitor, chunk_size=10)
    assert len(calls) == 1
    assert calls[0] < 1.0


def test_cancel_check_callable(scenario):
    with pytest.raises(CancellationError):
        find_frequent_itemsets(scenario, 0.5, monitor=ExecutionMonitor(cancel_event=lambda: True))


def test_candidate_limit(scenario):
    with pytest.raises(ResourceExhausted) as excinfo:
        find_frequent_itemsets(scenario, 0.5, max_candidates=1)
    assert 'min_support' in excinfo.value.hint


def test_matrix_limit(scenario):
    with pytest.raises(ResourceExhausted):
        find_frequent_itemsets(scenario, 0.5, backend='array', max_matrix_cells=5)
    store = find_frequent_itemsets(scenario, 0.5, backend='prefix_tree', max_matrix_cells=5)
    assert len(store) == 5


def test_progress_reaches_one_and_never_decreases(random_transactions):
    seen = []
    monitor = ExecutionMonitor(progress_callback=lambda fraction, message: seen.append(fraction))
    find_frequent_itemsets(random_transactions, 0.1, max_itemset_length=4, monitor=monitor, chunk_size=16)
    assert seen == sorted(seen)
    assert seen[-1] == 1.0


def test_mine_uses_encoded_names(scenario):
    encoded = EncodedTransactions(
        transactions=tuple(Transaction(i, t) for i, t in enumerate(scenario)),
        item_count=3,
        name_mapping=('A', 'B', 'C')
    )
    result = mine(encoded, min_support=0.5, min_confidence=0.6)
    assert [d['items'] for d in result.itemsets_as_dicts()] == [['A'], ['B'], ['C'], ['A', 'B'], ['B', 'C']]
    assert result.stats['num_transactions'] == 4
    assert [level['level'] for level in result.stats['levels']] == [1, 2]


def test_matches_mlxtend_apriori(random_transactions):
    apriori = pytest.importorskip("mlxtend.frequent_patterns").apriori
    encoded = EncodedTransactions(
        transactions=tuple(Transaction(i, t) for i, t in enumerate(random_transactions)),
        item_count=8,
        name_mapping=tuple(f"i{k}" for k in range(8))
    )
    result = mine(encoded, min_support=0.12, max_itemset_length=4)
    expected = apriori(encoded.to_onehot_frame(), min_support=0.12, use_colnames=True, max_len=4)

    ours = {frozenset(d['items']): d['support'] for d in result.itemsets_as_dicts()}
    theirs = dict(zip(expected['itemsets'], expected['support']))
    assert set(ours) == set(theirs)
    for itemset, support in ours.items():
        assert support == pytest.approx(theirs[itemset])
