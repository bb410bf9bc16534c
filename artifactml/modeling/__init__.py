from .categories import ModelCategory

__all__ = ["ModelCategory"]
