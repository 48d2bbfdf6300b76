"""
Gamepasses caching package.

Holds the per-process response cache. Entries expire lazily on read and are
never shared between instances.
"""
