import logging
import os
import signal
import sys
from typing import (
    Callable,
    Iterable,
    List,
    NoReturn,
    Optional,
    TextIO,
    Tuple,
)

from bump.codes import ExitCategory
from bump.errors import (
    BadConfiguration,
    BumpError,
    MissingInput,
    TerminationInProgress,
)
from bump.stamp import RunStamp, make_stamp

RULE = "=" * 40
WAIT = 5
CLEANUP_PREFIX = "cleanup_"

CleanupAction = Callable[[ExitCategory], object]


class StampFormatter(logging.Formatter):
    def __init__(self, bump: "Bump"):
        super().__init__()
        self.bump = bump

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if getattr(record, "bare", False):
            return message
        return f"{self.bump.stamp}: {message}"


class Bump:
    """
    Process-wide supervision handle.

    Owns the run-stamp, the stamped diagnostic logger and the ordered
    list of cleanup actions. terminate() is the only way out of the
    process; supervise() wraps a whole run so that any exception ends
    up there.
    """

    def __init__(
        self,
        stamp: Optional[RunStamp] = None,
        stream: Optional[TextIO] = None,
        rule: str = RULE,
        wait: float = WAIT,
        exit: Callable[[int], object] = sys.exit,
    ):
        self.stamp = stamp
        self.rule = rule
        self.wait = wait
        self.cleanup_actions: List[Tuple[str, CleanupAction]] = []
        self.terminating = False
        self._shutdown_signals = set()
        self._exit = exit

        handler = logging.StreamHandler(
            stream if stream is not None else sys.stderr
        )
        handler.setFormatter(StampFormatter(self))
        # Each handle owns a child of the "bump" logger.
        self.logger = logging.getLogger(f"bump.{id(self)}")
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False
        for old in list(self.logger.handlers):
            self.logger.removeHandler(old)
        self.logger.addHandler(handler)

    @classmethod
    def from_env(cls, environ=None, **kwargs) -> "Bump":
        return cls(**kwargs).apply_env(environ)

    def apply_env(self, environ=None) -> "Bump":
        """Take RULE and WAIT from the environment when they are set."""
        environ = os.environ if environ is None else environ
        self.rule = environ.get("RULE") or self.rule
        wait = environ.get("WAIT")
        if wait:
            try:
                self.wait = float(wait)
            except ValueError as e:
                raise BadConfiguration(
                    f"WAIT must be a number of seconds, not {wait!r}"
                ) from e
        return self

    def set_stamp(self) -> RunStamp:
        if self.stamp is None:
            self.stamp = make_stamp()
        return self.stamp

    # Logging

    def _require_stamp(self) -> None:
        if not self.stamp:
            raise BadConfiguration("cannot run without date stamp")

    def log_message(self, message: str, level: int = logging.INFO) -> None:
        self._require_stamp()
        if not message:
            raise BadConfiguration("cannot log an empty message")
        self.logger.log(level, message)

    def warning(self, message: str) -> None:
        self.log_message(message, level=logging.WARNING)

    def log_setting(self, label: str, value) -> None:
        self._require_stamp()
        if value is None or value == "":
            raise MissingInput(f"cannot run without {label}")
        self.logger.info(f"{label} is {value}")

    def print_rule(self) -> None:
        print(self.rule)

    def print_error_rule(self) -> None:
        self.logger.info(self.rule, extra={"bare": True})

    # Cleanup and termination

    def register(self, name: str, action: CleanupAction) -> None:
        self.cleanup_actions.append((name, action))

    def terminate(self, category: int) -> NoReturn:
        category = ExitCategory.from_code(category)
        if self.terminating:
            self.warning(
                "already exiting, not restarting cleanup for code "
                f"{int(category)}"
            )
            raise TerminationInProgress(
                "termination requested during cleanup", category
            )
        self.terminating = True
        self.set_stamp()
        self.print_error_rule()
        self.log_message(f"exiting cleanly with code {int(category)}. . .")
        for name, action in self.cleanup_actions:
            if not name.startswith(CLEANUP_PREFIX):
                self.warning(f"not calling {name} (invalid name)")
                continue
            if not callable(action):
                self.warning(f"cleanup function {name} not found")
                continue
            try:
                action(category)
            except Exception as e:
                self.logger.error(f"{name} failed: {e}")
        self.log_message(f". . . all done with code {int(category)}")
        self._exit(int(category))
        # Only reached when an injected exit callable returns.
        raise SystemExit(int(category))

    def report(
        self, code: int, description: str, exit_message: Optional[str] = None
    ) -> int:
        """
        Log that `description` finished with `code`.
        Without exit_message execution continues and the code is returned;
        with one the process is terminated with the code. Never call it with
        exit_message from a cleanup action.
        """
        self.log_message(f"{description} exited with code {int(code)}")
        if not exit_message:
            self.log_message("continuing . . .")
            return code
        self.log_message(exit_message)
        self.terminate(code)

    # Signals

    def install_signal_handlers(
        self,
        signals: Iterable[int] = (signal.SIGINT, signal.SIGTERM),
        shutdown: Iterable[int] = (),
    ) -> None:
        self._shutdown_signals = set(shutdown)
        for signum in list(signals) + list(shutdown):
            signal.signal(signum, self.handle_signal)

    def handle_signal(self, signum: int, frame) -> None:
        name = signal.Signals(signum).name
        if self.terminating:
            self.warning(f"trapped signal {name} while exiting, ignoring")
            return
        self.log_message(f"trapped signal {name}")
        if signum in self._shutdown_signals:
            self.terminate(ExitCategory.SHUTDOWN_SIGNAL)
        self.terminate(ExitCategory.TRAPPED_SIGNAL)

    # Top level

    def supervise(self, func: Callable, *args, **kwargs) -> NoReturn:
        """
        Run func and terminate with the outcome. A BumpError ends with its
        own category, an OSError with FILING_ERROR and any other exception
        with SYSTEM_UNIT_FAILURE, always after the cleanup actions ran.
        """
        try:
            func(*args, **kwargs)
        except BumpError as e:
            self.set_stamp()
            self.logger.error(e.message)
            self.terminate(e.category)
        except OSError as e:
            self.set_stamp()
            self.logger.error(f"{type(e).__name__}: {e}")
            self.terminate(ExitCategory.FILING_ERROR)
        except Exception as e:
            self.set_stamp()
            self.logger.error(f"{type(e).__name__}: {e}")
            self.terminate(ExitCategory.SYSTEM_UNIT_FAILURE)
        self.terminate(ExitCategory.SUCCESS)
