"""
Series layer — ordered observation sequences and the cache-aware loader.

Modules:
  store   — Row → observation conversion, range filters, display slices.
  loader  — Cache → FRED → placeholder load order shared by every indicator.
"""
