"""
Concrete applications used across the test suite.
"""

from __future__ import annotations

from typing import Any, List, Optional

from bootline.application import Application, CommandLineApplication
from bootline.event import Event


class SampleApplication(Application):
    """Application whose hooks can be steered and observed by tests."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.fail_start = False
        self.raise_on_run: Optional[BaseException] = None
        self.ran = False
        self.finished = False
        self.crash_reports: List[Any] = []
        self.error_messages: List[str] = []
        super().__init__(*args, **kwargs)

    def on_start(self) -> bool:
        if self.fail_start:
            return False
        return super().on_start()

    def on_run(self) -> None:
        self.ran = True
        if self.raise_on_run is not None:
            raise self.raise_on_run
        self.bus.emit(Event("sample.ran"))

    def on_finish(self) -> None:
        self.finished = True
        super().on_finish()

    def on_crash(self, report: Any) -> None:
        self.crash_reports.append(report)
        super().on_crash(report)

    def on_error(self, message: str) -> bool:
        self.error_messages.append(message)
        super().on_error(message)
        return False


class SampleCommandLine(CommandLineApplication):
    """Command-line application with a flag and a value switch."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.verbose = False
        self.target: Optional[str] = None
        self.ran = False
        super().__init__(*args, **kwargs)
        self.add_handler("--verbose", "Chatty output", self._enable_verbose)
        self.add_handler("--target", "Target name", self._set_target, takes_value=True)
        self.add_handler("--stop", "Halt before running", lambda: False)

    def get_description(self) -> str:
        return "Sample command-line application"

    def on_run(self) -> None:
        self.ran = True

    def _enable_verbose(self) -> bool:
        self.verbose = True
        return True

    def _set_target(self, value: str) -> bool:
        self.target = value
        return True
