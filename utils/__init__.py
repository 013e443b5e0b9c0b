from .run_utils import RunManager

__all__ = ["RunManager"]
