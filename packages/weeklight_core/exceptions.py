"""Exceptions raised by the weeklight engine"""


class WeeklightError(Exception):
    """Base exception for all weeklight errors"""
    pass


class ConfigurationError(WeeklightError, ValueError):
    """Invalid schedule definition (unknown group, cyclic inheritance, missing data)"""

    def __init__(self, message: str, schedule: str | None = None):
        super().__init__(message)
        self.schedule = schedule


class ProducerError(WeeklightError):
    """Command rejected at the dispatcher boundary"""
    pass


class DeviceError(WeeklightError):
    """Device interface reported a failed send"""
    pass


class SchedulerActivationError(WeeklightError):
    """Requested schedule does not exist"""
    pass
