"""Exceptions raised while building or loading a prefilter."""


class InvalidParameterError(ValueError):
    """A filter parameter is outside its valid range."""


class PlistFormatError(ValueError):
    """A filter property list is unreadable or missing required keys."""
