"""
Initializer discovery and execution.

Purpose
-------
Runs every startup component ("initializer") of an application during
`Application.on_start`, in a stable, deterministic order.

Responsibilities
----------------
- Find the initializer package: registry key ``Initializers.Package``, else
  the ``initializers.package`` setting
- Walk its modules in lexical order with ``pkgutil``
- Instantiate each `Initializer` subclass defined in a module, in definition
  order, and call ``run(app)``
- Log and skip failures; one broken initializer never blocks the rest

Non-Responsibilities
--------------------
- Ordering between initializers beyond module name + definition order
- Retrying failed initializers
"""

from __future__ import annotations

import importlib
import inspect
import pkgutil
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import ModuleType
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from bootline.exceptions import InitializerError
from bootline.logging.logger import get_logger

if TYPE_CHECKING:
    from bootline.application.base import Application

logger = get_logger(__name__)

REGISTRY_KEY = "Initializers.Package"


class Initializer(ABC):
    """
    A startup component.

    Subclasses defined anywhere inside the application's initializer package
    are discovered and run automatically.

    Examples
    --------
    >>> class ConnectCache(Initializer):
    ...     def run(self, app):
    ...         app.set_registry_object("Cache", Cache.connect())
    """

    @abstractmethod
    def run(self, app: Application) -> None:
        ...


@dataclass
class InitializerResult:
    """Outcome of running a single initializer."""

    name: str
    success: bool
    duration_ms: float
    error: Optional[Exception] = None


class InitializerRunner:
    """Discovers and executes the initializers of one application."""

    def __init__(self, app: Application) -> None:
        self._app = app
        self.results: List[InitializerResult] = []

    def get_package_name(self) -> Optional[str]:
        package = self._app.get_registry_object(REGISTRY_KEY)
        if not package:
            package = self._app.get_setting("initializers", "package")
        return str(package) if package else None

    def execute(self) -> Dict[str, Any]:
        """
        Run every discovered initializer.

        Returns
        -------
        dict:
            ``package``, ``discovered``, ``succeeded`` and ``failed`` counts.
        """
        self.results = []
        package_name = self.get_package_name()

        if not package_name:
            logger.debug("No initializer package configured")
            return self._build_stats(package_name)

        try:
            package = importlib.import_module(package_name)
        except ImportError as exc:
            logger.debug(
                "Initializer package cannot be imported",
                extra={"package": package_name, "error": str(exc)},
            )
            return self._build_stats(package_name)

        for initializer_cls in self.discover(package):
            self.results.append(self._run_one(initializer_cls))

        stats = self._build_stats(package_name)
        logger.debug("Initializers executed", extra=stats)
        return stats

    def discover(self, package: ModuleType) -> List[type]:
        """Return initializer classes in module-name, then definition, order."""
        search_path = getattr(package, "__path__", None)
        if search_path is None:
            return self._initializers_in(package)

        module_names: List[str] = []
        for _, name, _ in pkgutil.walk_packages(
            search_path,
            prefix=f"{package.__name__}.",
            onerror=self._log_walk_error,
        ):
            module_names.append(name)

        found: List[type] = []
        for name in sorted(module_names):
            try:
                module = importlib.import_module(name)
            except Exception as exc:
                logger.error(
                    "Failed to import initializer module",
                    extra={
                        "module": name,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                    exc_info=True,
                )
                continue
            found.extend(self._initializers_in(module))
        return found

    @staticmethod
    def _initializers_in(module: ModuleType) -> List[type]:
        return [
            obj
            for obj in vars(module).values()
            if inspect.isclass(obj)
            and issubclass(obj, Initializer)
            and obj.__module__ == module.__name__
            and not inspect.isabstract(obj)
        ]

    def _run_one(self, initializer_cls: type) -> InitializerResult:
        name = f"{initializer_cls.__module__}.{initializer_cls.__qualname__}"
        start_time = time.perf_counter()

        try:
            initializer_cls().run(self._app)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            error = InitializerError(name, exc)
            logger.error(
                "Initializer failed",
                extra={
                    "initializer": name,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                    "error_code": error.error_code,
                    "duration_ms": round(duration_ms, 2),
                },
                exc_info=True,
            )
            return InitializerResult(name, False, duration_ms, error)

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            "Initializer completed",
            extra={"initializer": name, "duration_ms": round(duration_ms, 2)},
        )
        return InitializerResult(name, True, duration_ms)

    @staticmethod
    def _log_walk_error(name: str) -> None:
        logger.error("Error discovering initializers", extra={"module": name})

    def _build_stats(self, package_name: Optional[str]) -> Dict[str, Any]:
        succeeded = sum(1 for r in self.results if r.success)
        return {
            "package": package_name,
            "discovered": len(self.results),
            "succeeded": succeeded,
            "failed": len(self.results) - succeeded,
        }
