"""Auto-Alert: watch a classifieds marketplace and notify subscribers of new car listings."""

__version__ = "0.1.0"
