"""Tableflow - reservation scheduling and table availability service"""

__version__ = "1.0.0"
