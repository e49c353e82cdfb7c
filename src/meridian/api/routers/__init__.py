from . import investment, wealth

__all__ = ["investment", "wealth"]
