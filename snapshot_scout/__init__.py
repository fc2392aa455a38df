"""
SnapshotScout package initializer.
Finds WAX snapshot downloads on provider sites and measures their throughput.
"""
__version__ = "0.1.0"
