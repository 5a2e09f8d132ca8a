"""
Category taxonomy service: hierarchy maintenance and item-count aggregation
"""

__version__ = "1.0.0"
