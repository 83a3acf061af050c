from .remediq_logger import LOG_FORMAT, setup_logging
from .remediq_trace_logger import TrialTraceLogger

__all__ = ["LOG_FORMAT", "TrialTraceLogger", "setup_logging"]
