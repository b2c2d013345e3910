#!/usr/bin/env python3
"""Base classes for per-file processors.

A processor is the strategy the transform dispatcher invokes once for every
matched file. This module provides:
- Processor abstract base class
- FunctionProcessor for plain callables
- ProcessorError for error handling
- Per-processor statistics

Example:
    >>> class SizeProcessor(Processor):
    ...     def process(self, handle, header):
    ...         return handle.size
    ...
    >>> processor = SizeProcessor()
    >>> processor.apply(handle, "File: /data/a.txt")
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from pathsieve.core.constants import ErrorCode
from pathsieve.core.file_ops import FileHandle
from pathsieve.core.validators import PathSieveError


class ProcessorError(PathSieveError):
    """Error raised by a processor."""

    def __init__(
        self,
        message: str,
        processor_name: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    ):
        super().__init__(message, error_code)
        self.processor_name = processor_name


class Processor(ABC):
    """Abstract base class for per-file processors.

    All processors must implement:
    - process(): Work done for one matched file

    Optional overrides:
    - finish(): Called once after the last file (flush buffered output)
    - describe(): One-line description used by preview-only mode

    Processors that change the filesystem set ``mutating = True``; the
    dispatcher then gates every invocation behind preview-only/confirm.
    """

    mutating = False

    def __init__(self, name: Optional[str] = None):
        """Initialize processor.

        Args:
            name: Optional name for this processor
        """
        self.name = name or self.__class__.__name__
        self._stats = {
            "processed": 0,
            "failed": 0,
            "total_duration_ms": 0.0,
        }

    @abstractmethod
    def process(self, handle: FileHandle, header: str) -> Any:
        """Process one matched file.

        Args:
            handle: The matched file
            header: "File: <absolute path>" line for this file

        Returns:
            Any result; the dispatcher yields it to the caller

        Raises:
            ProcessorError: If processing fails
        """

    def apply(self, handle: FileHandle, header: str) -> Any:
        """Run process() with timing and statistics.

        Exceptions propagate unchanged after being counted.
        """
        start_time = time.time()
        try:
            result = self.process(handle, header)
        except Exception:
            self._stats["failed"] += 1
            raise
        finally:
            self._stats["total_duration_ms"] += (time.time() - start_time) * 1000

        self._stats["processed"] += 1
        return result

    def describe(self, handle: FileHandle) -> str:
        """Describe what process() would do to this file."""
        return f"{self.name} {handle.path}"

    def finish(self) -> Any:
        """Hook called once after every file has been processed."""
        return None

    def get_stats(self) -> Dict[str, Any]:
        """Get processor statistics."""
        return self._stats.copy()


class FunctionProcessor(Processor):
    """Adapts a plain ``(handle, header) -> result`` callable."""

    def __init__(
        self,
        func: Callable[[FileHandle, str], Any],
        name: Optional[str] = None,
        mutating: bool = False,
    ):
        super().__init__(name=name or getattr(func, "__name__", None))
        self._func = func
        self.mutating = mutating

    def process(self, handle: FileHandle, header: str) -> Any:
        return self._func(handle, header)


def as_processor(processor: Any) -> Processor:
    """Return processor itself, or wrap a callable in a FunctionProcessor."""
    if isinstance(processor, Processor):
        return processor
    if callable(processor):
        return FunctionProcessor(processor)
    raise TypeError(f"Processor must be a Processor or callable, got {type(processor).__name__}")
