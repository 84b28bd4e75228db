"""
Application version information.

Version format: MAJOR.MINOR
- MAJOR: Breaking changes (0 while the API is still settling)
- MINOR: Incremented with each release

Version is displayed on server startup and in GET / endpoint.
"""

__version__ = "0.1"
