"""
VitalStream exceptions
"""


class VitalStreamError(Exception):
    """Base class for all VitalStream errors"""


class SampleDecodeError(VitalStreamError):
    """A raw sensor event could not be decoded into a sample"""


class SessionStartError(VitalStreamError):
    """A tracking session could not be started"""
