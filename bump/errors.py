from typing import Optional

from bump.codes import ExitCategory


class BumpError(Exception):
    category = ExitCategory.BAD_CONFIGURATION

    def __init__(self, message: str, category: Optional[ExitCategory] = None):
        super().__init__(message)
        self.message = message
        if category is not None:
            self.category = ExitCategory.from_code(category)


class MissingInput(BumpError):
    category = ExitCategory.MISSING_INPUT


class MissingFile(BumpError):
    category = ExitCategory.MISSING_FILE


class MissingFolder(BumpError):
    category = ExitCategory.MISSING_FOLDER


class MissingDisk(BumpError):
    category = ExitCategory.MISSING_DISK


class MissingMount(BumpError):
    category = ExitCategory.MISSING_MOUNT


class MissingCommand(BumpError):
    category = ExitCategory.MISSING_CMD


class BadConfiguration(BumpError):
    category = ExitCategory.BAD_CONFIGURATION


class Unsafe(BumpError):
    category = ExitCategory.UNSAFE


class CorruptData(BumpError):
    category = ExitCategory.CORRUPT_DATA


class SystemUnitFailure(BumpError):
    category = ExitCategory.SYSTEM_UNIT_FAILURE


class SecurityFailure(BumpError):
    category = ExitCategory.SECURITY_FAILURE


class NetworkError(BumpError):
    category = ExitCategory.NETWORK_ERROR


class FilingError(BumpError):
    category = ExitCategory.FILING_ERROR


class TrappedSignal(BumpError):
    category = ExitCategory.TRAPPED_SIGNAL


class ShutdownSignal(BumpError):
    category = ExitCategory.SHUTDOWN_SIGNAL


# Raised when terminate() is entered while a termination is already running.
class TerminationInProgress(BumpError):
    pass
