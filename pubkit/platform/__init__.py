"""Platform abstraction layer."""

from .files import atomic_write_json, atomic_write_text, read_json_object
from .process import ProcessError, run

__all__ = [
    # files
    "atomic_write_json",
    "atomic_write_text",
    "read_json_object",
    # process
    "ProcessError",
    "run",
]
