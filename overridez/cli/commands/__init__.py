"""CLI commands for overridez."""

from . import (
    add,
    list_cmd,
    delete,
    flags,
    check,
    config_cmd,
)

__all__ = [
    "add",
    "list_cmd",
    "delete",
    "flags",
    "check",
    "config_cmd",
]
