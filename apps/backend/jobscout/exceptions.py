"""
Exceptions raised by the jobscout pipeline.

Malformed input never raises; these signal caller mistakes or a failing
content classifier.
"""


class PipelineError(Exception):
    """Base class for pipeline errors."""


class ClassifierError(PipelineError):
    """The content classifier could not produce a usable answer."""
