"""
Core utilities and shared components for the MeetPoll platform.

This package provides the caching helpers and the exception hierarchy shared
by the scheduling app and its API.
"""

__version__ = "1.0.0"
