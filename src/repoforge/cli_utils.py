"""CLI utility functions for repoforge.

This module provides common utilities used across CLI commands including:
- Error handling and formatting
- Configuration path validation
- Pre-flight checks for required tools
"""

import shutil
import sys
from pathlib import Path
from typing import List, Optional


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "Configuration error")
            message: Error message details
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        print()

    @staticmethod
    def print_success(message: str) -> None:
        print()
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        print()
        print(f"{ErrorFormatter.YELLOW}⚠ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def handle_config_error(error: Exception) -> None:
        """Report a configuration problem and exit with code 1."""
        ErrorFormatter.print_error("Configuration error", str(error))
        sys.exit(1)

    @staticmethod
    def handle_permission_error(error: PermissionError) -> None:
        ErrorFormatter.print_error("Error: Permission denied", str(error))
        sys.exit(1)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Run interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            import traceback

            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


class PathValidator:
    """Validates user-supplied paths."""

    @staticmethod
    def validate_config_file(config_path: Optional[Path]) -> None:
        """Validate that an explicitly given config file exists.

        Args:
            config_path: Path to validate (None means the default lookup)

        Raises:
            SystemExit: If the path doesn't exist or isn't a file
        """
        if config_path is None:
            return
        if not config_path.exists():
            print(
                f"{ErrorFormatter.RED}✗ Error: Path does not exist: {config_path}{ErrorFormatter.RESET}"
            )
            sys.exit(2)
        if not config_path.is_file():
            print(
                f"{ErrorFormatter.RED}✗ Error: Path is not a file: {config_path}{ErrorFormatter.RESET}"
            )
            sys.exit(2)


class ToolChecker:
    """Checks that external tools are on PATH."""

    @staticmethod
    def missing_tools(tools: List[str]) -> List[str]:
        """Return the tools that cannot be found on PATH."""
        return [tool for tool in tools if shutil.which(tool) is None]
