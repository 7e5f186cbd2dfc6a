"""Document and settings state for SentinelLS."""
from .documents import DocumentStore, DuplicateDocument, UnknownDocument
from .settings import Settings, SettingsResolver

__all__ = [
    'DocumentStore',
    'DuplicateDocument',
    'UnknownDocument',
    'Settings',
    'SettingsResolver',
]
