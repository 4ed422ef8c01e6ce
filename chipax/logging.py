"""Console logging utilities for chipax.

This module provides the console logger used by the host runner, and the
diagnostic hook that reports halts and ignored opcodes from inside compiled
interpreter code through ``jax.debug.callback``.
"""

import sys
import time
from typing import Optional, TextIO, Union

import jax
import jax.numpy as jnp
import numpy as np

from chipax.state import HaltCode


class ConsoleLogger:
    """Flexible console logger with level filtering and colors."""

    def __init__(
        self,
        name: str = "Chipax",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
        stream: Union[str, TextIO] = "stdout",
    ):
        self.name = name
        self.log_level = log_level.upper()
        self.stream = stream
        output = self._output()
        self.use_colors = (
            use_colors and hasattr(output, "isatty") and output.isatty()
        )
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

        self.colors = (
            {
                "DEBUG": "\033[36m",
                "INFO": "\033[32m",
                "WARNING": "\033[33m",
                "ERROR": "\033[31m",
                "CRITICAL": "\033[35m",
                "RESET": "\033[0m"
            }
            if self.use_colors
            else {
                k: ""
                for k in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "RESET"]
            }
        )

        self.level_order = {
            "DEBUG": 0,
            "INFO": 1,
            "WARNING": 2,
            "ERROR": 3,
            "CRITICAL": 4,
        }

    def _output(self) -> TextIO:
        # Resolved on every call so redirected sys streams are honoured.
        if self.stream == "stdout":
            return sys.stdout
        if self.stream == "stderr":
            return sys.stderr
        return self.stream

    def set_level(self, log_level: str):
        """Change the minimum level that gets printed."""
        if log_level.upper() not in self.level_order:
            raise ValueError(
                f"Unknown log level '{log_level}'. Available: {list(self.level_order)}"
            )
        self.log_level = log_level.upper()

    def _should_log(self, level: str) -> bool:
        """Check if message should be logged based on current log level."""
        return self.level_order.get(level.upper(), 1) >= self.level_order.get(
            self.log_level, 1
        )

    def _format_message(self, level: str, message: str) -> str:
        """Format log message with timestamp, level, and colors."""
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        name_str = f"[{self.name}]"

        if self.use_colors:
            color = self.colors.get(level.upper(), "")
            reset = self.colors["RESET"]
            level_str = f"{color}{level_str}{reset}"

        return f"{timestamp}{level_str}{name_str} {message}"

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        if self._should_log(level):
            formatted = self._format_message(level, message)
            print(formatted, file=self._output(), flush=True)

    def debug(self, message: str):
        """Log debug message."""
        self.log("DEBUG", message)

    def info(self, message: str):
        """Log info message."""
        self.log("INFO", message)

    def warning(self, message: str):
        """Log warning message."""
        self.log("WARNING", message)

    def error(self, message: str):
        """Log error message."""
        self.log("ERROR", message)

    def critical(self, message: str):
        """Log critical message."""
        self.log("CRITICAL", message)


logger = ConsoleLogger("chipax", stream="stderr")


HALT_MESSAGES = {
    HaltCode.UNKNOWN_INSTRUCTION: "Unknown opcode: 0x{opcode:04X}",
    HaltCode.STACK_OVERFLOW: "Stack overflow calling from opcode 0x{opcode:04X}",
    HaltCode.STACK_UNDERFLOW: "Stack underflow returning from opcode 0x{opcode:04X}",
}


def is_ignored_opcode(opcode) -> bool:
    """0NNN machine-code calls other than 00E0/00EE are skipped."""
    return (opcode & 0xF000) == 0 and opcode not in (0x00E0, 0x00EE)


def report_diagnostics(halt_before, halt_after, instruction, output: Optional[ConsoleLogger] = None):
    """Host side of the diagnostic hook.

    Arguments may be scalars or batches (one entry per machine when the
    interpreter runs under ``jax.vmap``). Machines that were already halted
    before the instruction report nothing.
    """
    output = output or logger
    for before, after, opcode in zip(
        np.ravel(halt_before), np.ravel(halt_after), np.ravel(instruction)
    ):
        before, after, opcode = int(before), int(after), int(opcode)
        if before != HaltCode.NONE:
            continue
        if after != HaltCode.NONE:
            output.error(HALT_MESSAGES[HaltCode(after)].format(opcode=opcode))
        elif is_ignored_opcode(opcode):
            output.warning(f"Opcode 0x{opcode:04X} ignored")


def emit_diagnostics(halt_before: jnp.ndarray, halt_after: jnp.ndarray, instruction: jnp.ndarray):
    """Report a new halt or an ignored opcode from traced code."""
    newly_halted = (halt_before == int(HaltCode.NONE)) & (halt_after != int(HaltCode.NONE))
    ignored = ((instruction & 0xF000) == 0) & (instruction != 0x00E0) & (instruction != 0x00EE)

    def _emit():
        jax.debug.callback(report_diagnostics, halt_before, halt_after, instruction)

    jax.lax.cond(newly_halted | ignored, _emit, lambda: None)
