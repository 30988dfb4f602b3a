"""
RSS Service
===========
Single-feed content distribution: items are pushed through an authenticated
API and served as RSS 2.0, Atom, JSON Feed and raw JSON with HTTP caching.
"""

__version__ = "1.0.0"
