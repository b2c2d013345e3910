"""Processor registry.

Built-in processors are registered explicitly by :func:`default_registry`.
Additional processors are named in configuration as ``module:attr``
references and imported by :func:`load_plugins`; nothing is discovered by
scanning directories.
"""

import importlib
from typing import Any, Callable, Dict, Iterable, List

from pathsieve.core.constants import ErrorCode
from pathsieve.core.logging import get_logger
from pathsieve.transforms.base import Processor, ProcessorError
from pathsieve.transforms.clipboard import ClipboardProcessor
from pathsieve.transforms.display import DisplayProcessor
from pathsieve.transforms.rename import RenameProcessor

ProcessorFactory = Callable[..., Processor]


class ProcessorRegistry:
    """Name → factory mapping for processors selectable by action name."""

    def __init__(self):
        self._factories: Dict[str, ProcessorFactory] = {}

    def register(self, name: str, factory: ProcessorFactory) -> None:
        """Register a processor factory.

        Raises:
            ValueError: If the name is empty or already registered
        """
        if not name:
            raise ValueError("Processor name cannot be empty")
        if name in self._factories:
            raise ValueError(f"Processor already registered: {name}")
        self._factories[name] = factory

    def create(self, name: str, **options: Any) -> Processor:
        """Instantiate a registered processor.

        Args:
            name: Registered action name
            **options: Keyword arguments for the factory

        Raises:
            ProcessorError: If the name is unknown or the factory fails
        """
        factory = self._factories.get(name)
        if factory is None:
            raise ProcessorError(
                f"Unknown action: {name}. Available: {', '.join(self.names())}",
                name,
                ErrorCode.INVALID_INPUT,
            )

        try:
            processor = factory(**options)
        except TypeError as e:
            raise ProcessorError(
                f"Bad options for action {name}: {e}", name, ErrorCode.INVALID_INPUT
            )

        if not isinstance(processor, Processor):
            raise ProcessorError(f"Factory for {name} did not return a Processor", name)
        return processor

    def names(self) -> List[str]:
        return sorted(self._factories)

    def __contains__(self, name: str) -> bool:
        return name in self._factories

    def __len__(self) -> int:
        return len(self._factories)


def default_registry() -> ProcessorRegistry:
    """Registry with the built-in display, clipboard and rename processors."""
    registry = ProcessorRegistry()
    registry.register("display", DisplayProcessor)
    registry.register("clipboard", ClipboardProcessor)
    registry.register("rename", RenameProcessor)
    return registry


def import_reference(reference: str) -> Any:
    """Import the object named by a ``package.module:attr`` reference.

    Raises:
        ProcessorError: If the module or attribute cannot be found
    """
    module_name, _, attr_path = reference.partition(":")
    if not module_name or not attr_path:
        raise ProcessorError(
            f"Plugin reference must look like 'module:attr': {reference}",
            error_code=ErrorCode.INVALID_INPUT,
        )

    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ProcessorError(
            f"Cannot import plugin module {module_name}: {e}", error_code=ErrorCode.DEPENDENCY_ERROR
        )

    for attr in attr_path.split("."):
        try:
            target = getattr(target, attr)
        except AttributeError:
            raise ProcessorError(
                f"Plugin {reference} not found: {module_name} has no attribute {attr_path}",
                error_code=ErrorCode.INVALID_INPUT,
            )
    return target


def load_plugins(registry: ProcessorRegistry, references: Iterable[str]) -> List[str]:
    """Register processors named by ``module:attr`` references.

    Each object is registered under its ``action_name`` attribute when it has
    one, otherwise under the attribute name.

    Returns:
        The names registered, in order

    Raises:
        ProcessorError: If a reference cannot be imported
        ValueError: If a name is already registered
    """
    logger = get_logger("pathsieve.transforms")
    registered = []
    for reference in references:
        factory = import_reference(reference)
        name = getattr(factory, "action_name", None) or reference.rpartition(":")[2].split(".")[-1]
        registry.register(name, factory)
        logger.debug("Registered plugin processor", name=name, reference=reference)
        registered.append(name)
    return registered
