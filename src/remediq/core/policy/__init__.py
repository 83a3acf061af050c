from .epsilon_greedy import EpsilonGreedyPolicy, decay_epsilon

__all__ = ["EpsilonGreedyPolicy", "decay_epsilon"]
