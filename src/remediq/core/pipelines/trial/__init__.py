from .trial_log import TrialLogWriter
from .trial_loop import LoopPhase, TrialLoop

__all__ = ["LoopPhase", "TrialLogWriter", "TrialLoop"]
