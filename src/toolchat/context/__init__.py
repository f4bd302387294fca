from .windower import ContextWindower

__all__ = ["ContextWindower"]
