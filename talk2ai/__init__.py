"""talk2ai - voice capture assistant that turns spoken segments into AI conversation turns."""

__version__ = "0.1.0"
