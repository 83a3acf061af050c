#!/usr/bin/env python3
"""
Temporal-difference learner over the engine's Q-table.
"""

import logging

from remediq.core.abstract.q_table.base_q_table_manager import BaseQTableManager

logger = logging.getLogger("REMEDIQ-Qtable")


class QTableManager(BaseQTableManager):
    """
    Learns action values from trial outcomes with the one-step Q-learning rule.
    """

    def update_policy(self, s: str, a: str, R: float, s_prime: str) -> float:
        """
        Update policy function with Q-learning formula

        Args:
            s: Current state key
            a: Action taken
            R: Reward received
            s_prime: Next state key (an unseen state counts as all zeros)

        Returns:
            float: Updated Q-value for (s, a)
        """
        Q_sa = self.Q(s, a)
        max_Q_s_prime = self.max_q(s_prime)

        target = R + self.gamma * max_Q_s_prime
        new_Q_sa = (1 - self.alpha) * Q_sa + self.alpha * target
        # Rounding must not carry the value past the target
        new_Q_sa = min(max(new_Q_sa, min(Q_sa, target)), max(Q_sa, target))

        self.Q_table.setdefault(s, {})[a] = new_Q_sa
        self.seen_states.add(s)

        logger.debug(f"Q-update [{a}]: {Q_sa:.4f} → {new_Q_sa:.4f}")
        logger.debug(
            f"Formula: (1 - {self.alpha:.2f}) * {Q_sa:.4f} + {self.alpha:.2f} * ({R:.2f} + {self.gamma:.2f} * {max_Q_s_prime:.4f})"
        )

        return new_Q_sa
