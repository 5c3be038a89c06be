"""Receipt line-item classification for bill splitting."""

__version__ = "0.1.0"
