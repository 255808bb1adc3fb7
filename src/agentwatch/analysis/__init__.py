"""Content analysis module

Turns raw pane captures into text the activity classifier can match.
"""

from .content_cleaner import ContentCleaner

__all__ = [
    "ContentCleaner",
]
