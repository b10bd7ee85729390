"""
Personal task tracker core.

Components:
- core: task model, immutable snapshot + transitions, TodoStore
- query: filters/search and statistics over a snapshot
- tabular: lossy CSV export and best-effort import
- storage: JSON codec and SQLite key-value persistence
- cli: console front end
"""

__version__ = "0.1.0"
