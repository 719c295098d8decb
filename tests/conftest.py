import numpy as np
import pandas as pd
import pytest

# A=0, B=1, C=2
SCENARIO_TRANSACTIONS = [(0, 1), (0, 1, 2), (0,), (1, 2)]


@pytest.fixture(scope="module")
def scenario():
    return list(SCENARIO_TRANSACTIONS)


@pytest.fixture(scope="module")
def random_transactions():
    rng = np.random.default_rng(7)
    matrix = rng.random((80, 8)) < 0.45
    return [tuple(int(i) for i in np.flatnonzero(row)) for row in matrix]


@pytest.fixture
def basket_frame():
    return pd.DataFrame({
        'customer': [10, 11, 12, 13],
        'basket': [['A', 'B'], ['A', 'B', 'C'], ['A'], ['B', 'C']]
    })
