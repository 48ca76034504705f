"""
TrackIt - Source Package

A personal finance tracker: record expenses against budget categories,
see where the money goes, and ask an AI advisor for a few tips.

DESIGN PRINCIPLES:
1. Derived figures are recomputed from the raw lists, never cached
2. Bad stored data degrades to defaults, never crashes
3. External services fail soft with a visible message
4. Every user action is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "TrackIt Team"
