from .trial import LoopPhase, TrialLogWriter, TrialLoop

__all__ = ["LoopPhase", "TrialLogWriter", "TrialLoop"]
