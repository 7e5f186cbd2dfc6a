"""SentinelLS: a small language server for Sentinel policies."""

__version__ = "0.1.0"
