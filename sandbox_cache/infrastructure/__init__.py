"""
Infrastructure Layer

Concrete stores and cache adapters.
"""
