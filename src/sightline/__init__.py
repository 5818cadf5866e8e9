"""SightLine: find where an observer's line of sight meets the terrain."""

__version__ = "0.1.0"
