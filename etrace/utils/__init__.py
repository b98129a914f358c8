# etrace/utils/__init__.py - Utilities module
"""
Utility functions and helpers.

This module provides:
- config.py: Configuration management and processor options
- logger.py: Logging setup
- helpers.py: Field, timestamp and value formatting helpers
"""
