from enum import IntEnum


class ExitCategory(IntEnum):
    SUCCESS = 0

    # Missing resources
    MISSING_INPUT = 60
    MISSING_FILE = 61
    MISSING_FOLDER = 62
    MISSING_DISK = 63
    MISSING_MOUNT = 64
    MISSING_CMD = 65

    # Configuration, data and safety
    BAD_CONFIGURATION = 70
    UNSAFE = 71
    CORRUPT_DATA = 72

    # System failures
    SYSTEM_UNIT_FAILURE = 80
    SECURITY_FAILURE = 81
    NETWORK_ERROR = 83
    FILING_ERROR = 84

    # Signals
    TRAPPED_SIGNAL = 113
    SHUTDOWN_SIGNAL = 114

    @property
    def band(self) -> str:
        if self == ExitCategory.SUCCESS:
            return "success"
        if 60 <= self < 70:
            return "missing"
        if 70 <= self < 80:
            return "configuration"
        if 80 <= self < 90:
            return "system"
        return "signal"

    @classmethod
    def from_code(cls, code: int) -> "ExitCategory":
        """
        Return the category for a numeric code.
        Codes outside the taxonomy are a misconfiguration of the caller
        and map to BAD_CONFIGURATION.
        """
        try:
            return cls(int(code))
        except ValueError:
            return cls.BAD_CONFIGURATION
