"""Per-file processors and the transform dispatcher."""

from pathsieve.transforms.base import FunctionProcessor, Processor, ProcessorError
from pathsieve.transforms.clipboard import ClipboardProcessor
from pathsieve.transforms.dispatcher import (
    RootSpec,
    TransformDispatcher,
    format_header,
    invoke_file_transform,
)
from pathsieve.transforms.display import DisplayProcessor
from pathsieve.transforms.registry import ProcessorRegistry, default_registry, load_plugins
from pathsieve.transforms.rename import RenameProcessor

__all__ = [
    "ClipboardProcessor",
    "DisplayProcessor",
    "FunctionProcessor",
    "Processor",
    "ProcessorError",
    "ProcessorRegistry",
    "RenameProcessor",
    "RootSpec",
    "TransformDispatcher",
    "default_registry",
    "format_header",
    "invoke_file_transform",
    "load_plugins",
]
