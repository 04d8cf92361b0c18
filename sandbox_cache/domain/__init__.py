"""
Domain Layer

Pure engines with no storage or I/O.
"""
