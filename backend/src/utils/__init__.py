"""
Utility modules for the practice scheduling backend.

This package contains shared utility functions and helpers used across
the application, including datetime utilities, overlap detection, schedule
guards and database query helpers.
"""
