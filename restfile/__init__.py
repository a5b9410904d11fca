"""restfile — run HTTP requests described in plain-text ``.http`` files."""

__version__ = "0.1.0"
