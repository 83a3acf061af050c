from .io_utils import atomic_write_text

__all__ = ["atomic_write_text"]
