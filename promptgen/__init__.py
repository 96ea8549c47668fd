"""Command-line client for hosted image and text generation APIs."""

__version__ = "0.4.0"
