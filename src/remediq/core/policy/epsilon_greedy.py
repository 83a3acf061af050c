import logging
import random
from typing import Mapping, Optional

from remediq.core.actions.catalog import ActionCatalog

logger = logging.getLogger(__name__)


class EpsilonGreedyPolicy:
    """
    Epsilon-greedy action selection over one Q-table row.

    Exploration is a weighted draw using each action's category weight, not a
    uniform one. Exploitation scans the catalog in declaration order and keeps
    the first action with the strictly greatest value. The policy holds no state
    besides its random generator; epsilon is supplied by the caller.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def select(
        self,
        state_key: str,
        q_row: Mapping[str, float],
        epsilon: float,
        catalog: ActionCatalog,
    ) -> str:
        if self.rng.random() < epsilon:
            action = self.explore(catalog)
            logger.debug("Exploring (epsilon=%.4f): %s", epsilon, action)
        else:
            action = self.exploit(q_row, catalog)
            logger.debug("Exploiting (epsilon=%.4f): %s", epsilon, action)
        return action

    def explore(self, catalog: ActionCatalog) -> str:
        names = catalog.names
        weights = [catalog.weight_of(name) for name in names]
        return self.rng.choices(names, weights=weights, k=1)[0]

    @staticmethod
    def exploit(q_row: Mapping[str, float], catalog: ActionCatalog) -> str:
        names = catalog.names
        best_action = names[0]
        best_value = q_row.get(best_action, 0.0)

        for name in names:
            value = q_row.get(name, 0.0)
            if value > best_value:
                best_value = value
                best_action = name

        return best_action


def decay_epsilon(epsilon: float, decay: float, min_epsilon: float) -> float:
    return max(min_epsilon, epsilon * decay)
