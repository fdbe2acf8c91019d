"""Shot timing analysis service for golf shot-tracking exports."""

__version__ = "0.1.0"
