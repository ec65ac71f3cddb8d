"""CLI utilities for dual-mode output (human-friendly + machine-readable).

Commands support both:
- Human mode (default): Rich formatting with colors and tables
- Machine mode (--json): Structured JSON output for scripts

Example:
    from ..utils import Output, ExitCode

    @app.command()
    def my_command():
        out = Output(console=console, json_mode=get_json_mode())
        out.success("Saved override", project="beam-core")
        out.table("Overrides", ["Project", "Kind"], [["beam-core", "expression"]])
        raise typer.Exit(out.finish())
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, PrivateAttr, ConfigDict
from rich.console import Console
from rich.table import Table

from ..errors import (
    AcquisitionFailure,
    CompositionError,
    MalformedRecord,
    OverridezError,
    PackageNotFound,
    StoreIOError,
    UnrecognizedOption,
)


class ExitCode:
    """Standardized exit codes for CLI commands.

        0 = Success
        1 = Usage or validation error
        2 = Malformed override record(s)
        3 = Package not found in index
        4 = Acquisition failed (external tool error)
        5 = Store I/O error
    """

    SUCCESS = 0
    VALIDATION_ERROR = 1
    MALFORMED_RECORD = 2
    NOT_FOUND = 3
    ACQUISITION_ERROR = 4
    STORE_ERROR = 5


_ERROR_EXIT_CODES: dict[type[OverridezError], int] = {
    PackageNotFound: ExitCode.NOT_FOUND,
    MalformedRecord: ExitCode.MALFORMED_RECORD,
    CompositionError: ExitCode.MALFORMED_RECORD,
    UnrecognizedOption: ExitCode.VALIDATION_ERROR,
    StoreIOError: ExitCode.STORE_ERROR,
    AcquisitionFailure: ExitCode.ACQUISITION_ERROR,
}


def exit_code_for(error: OverridezError) -> int:
    for error_type, code in _ERROR_EXIT_CODES.items():
        if isinstance(error, error_type):
            return code
    return ExitCode.VALIDATION_ERROR


class Output(BaseModel):
    """Dual-mode output handler for CLI commands.

    In human mode: Uses Rich for pretty terminal output with colors and formatting.
    In JSON mode: Collects structured data and outputs JSON at the end.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    console: Console
    json_mode: bool = False

    _data: dict[str, Any] = PrivateAttr()
    _exit_code: int = PrivateAttr(default=ExitCode.SUCCESS)

    def model_post_init(self, __context: Any) -> None:
        # Ensure _data is a fresh dict for each instance
        self._data = {
            "status": "success",
            "warnings": [],
            "errors": [],
        }

    def success(self, message: str, **data: Any) -> None:
        """Output a success message with optional data."""
        if self.json_mode:
            self._data.update(data)
        else:
            self.console.print(f"[green]✓[/green] {message}")

    def warning(
        self,
        message: str,
        *,
        project: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        """Output a warning message."""
        if self.json_mode:
            warning_obj: dict[str, Any] = {"message": message}
            if project:
                warning_obj["project"] = project
            if suggestion:
                warning_obj["suggestion"] = suggestion
            self._data["warnings"].append(warning_obj)
        else:
            self.console.print(f"[yellow]⚠[/yellow] {message}")
            if suggestion:
                self.console.print(f"  [dim]→ {suggestion}[/dim]")

    def error(
        self,
        message: str,
        *,
        project: str | None = None,
        suggestion: str | None = None,
        exit_code: int = ExitCode.VALIDATION_ERROR,
    ) -> None:
        """Output an error message and set exit code."""
        self._exit_code = exit_code
        self._data["status"] = "error"

        if self.json_mode:
            error_obj: dict[str, Any] = {"message": message}
            if project:
                error_obj["project"] = project
            if suggestion:
                error_obj["suggestion"] = suggestion
            self._data["errors"].append(error_obj)
        else:
            self.console.print(f"[red]✗[/red] {message}")
            if suggestion:
                self.console.print(f"  [dim]→ {suggestion}[/dim]")

    def fail(self, exc: OverridezError, *, project: str | None = None) -> None:
        """Report an overridez error with its mapped exit code."""
        self.error(str(exc), project=project, exit_code=exit_code_for(exc))

    def text(self, message: str) -> None:
        """Output plain text (human mode only)."""
        if not self.json_mode:
            self.console.print(message)

    def table(
        self,
        title: str,
        columns: list[str],
        rows: list[list[str]],
        *,
        data_key: str | None = None,
    ) -> None:
        """Output a formatted table.

        Args:
            title: Table title
            columns: Column headers
            rows: Table rows (list of lists)
            data_key: Key to use in JSON output (defaults to snake_case of title)
        """
        key = data_key or title.lower().replace(" ", "_")

        if self.json_mode:
            self._data[key] = [dict(zip(columns, row)) for row in rows]
        else:
            table = Table(title=title, show_header=True, header_style="bold")
            for col in columns:
                table.add_column(col)
            for row in rows:
                table.add_row(*row)
            self.console.print(table)

    def set_data(self, key: str, value: Any) -> None:
        """Set arbitrary data in JSON output."""
        self._data[key] = value

    def finish(self) -> int:
        """Finalize output and return exit code.

        In JSON mode, prints the accumulated data as JSON to stdout.
        Returns the exit code that should be passed to typer.Exit().
        """
        if self.json_mode:
            self._data["exit_code"] = self._exit_code
            print(json.dumps(self._data, indent=2, default=str))

        return self._exit_code
