from .analyzer import TrialAnalyzer

__all__ = ["TrialAnalyzer"]
