from .reader import apply_batch, load, load_data, load_interactive
from .writer import save

__all__ = ["load", "load_data", "load_interactive", "apply_batch", "save"]
