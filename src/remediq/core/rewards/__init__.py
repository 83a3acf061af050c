from .reward_function import ErrorPenalty, RewardFunction, RewardWeights

__all__ = ["ErrorPenalty", "RewardFunction", "RewardWeights"]
