"""Exceptions raised by the audio guide core."""


class GuideError(Exception):
    """Base class for audio guide errors"""


class InvalidInput(GuideError, ValueError):
    """A location, radius or result cap the core cannot accept"""


class CatalogError(GuideError):
    """Malformed catalog data (bad file, duplicate ids)"""


class TraceError(GuideError):
    """Unreadable or malformed recorded location trace"""
