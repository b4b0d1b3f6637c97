"""tabcalc — batch evaluator for small formula grids."""

__version__ = "0.1.0"
