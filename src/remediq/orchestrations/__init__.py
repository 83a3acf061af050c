from .trial_orchestrator import RemediqTrialOrchestrator, remediq_run_pipeline

__all__ = ["RemediqTrialOrchestrator", "remediq_run_pipeline"]
