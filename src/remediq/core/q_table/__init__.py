from .q_table_manager import QTableManager
from .state_encoder import StateEncoder

__all__ = ["QTableManager", "StateEncoder"]
