"""
Watermark error types.

Every error raised by the codecs derives from WatermarkError, which is a
ValueError so callers that only catch ValueError keep working.
"""


class WatermarkError(ValueError):
    """Base error for watermark embedding and extraction."""

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        return self.message


class ParameterInvalid(WatermarkError):
    """Bad strength, repeat, seed or message. Fatal to the call."""


class CapacityExceeded(WatermarkError):
    """Payload does not fit the codec's capacity for this image."""


class InvalidDimensions(WatermarkError):
    """Image is smaller than one transform unit of the codec."""
