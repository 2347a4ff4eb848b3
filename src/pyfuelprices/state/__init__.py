"""State/store layer.

This package owns how partial records from every source are merged into a
deterministic snapshot, where that snapshot lives, and when it is refreshed.
"""
