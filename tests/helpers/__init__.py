"""Test helper modules for the statebinding test suite.

- machines: sample state/transition enums, definition and owner
- cache_utils: reset utilities for global defaults
"""
