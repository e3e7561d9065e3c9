"""ship: release and merge automation for a CLI project repository."""

__version__ = "0.4.0"
