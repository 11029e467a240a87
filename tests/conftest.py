import numpy as np
import pytest

from bdt_forest.data.synthetic import generate_signal_background_data


class StubTree:
    """Tree stand-in returning fixed responses and importances"""

    def __init__(self, response=0.5, importance=None, responses=None):
        self.response = response
        self.responses = responses
        self.importance = np.asarray(importance if importance is not None else [0.0])
        self.n_vars = len(self.importance)

    def check_event(self, values, use_yes_no_leaf=True):
        return self.response

    def check_events(self, X, use_yes_no_leaf=True):
        if self.responses is not None:
            return np.asarray(self.responses, dtype=float)
        return np.full(np.asarray(X).shape[0], self.response)

    def get_variable_importance(self):
        return self.importance.copy()


@pytest.fixture
def stub_tree_class():
    return StubTree


@pytest.fixture(scope="session")
def signal_background_data():
    return generate_signal_background_data(
        n_events=800, n_vars=3, n_informative=1, shift=2.0, random_state=7
    )
