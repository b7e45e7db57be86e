"""
Progress reporting utilities for repovendor.

Status lines go to stderr so stdout stays clean for data, and are shown only
when stderr is a terminal unless explicitly enabled.
"""

import sys
import os
from typing import Optional
from contextlib import contextmanager
import time


class ProgressReporter:
    """Writes status lines for one command to stderr."""

    def __init__(self, enabled: Optional[bool] = None):
        """
        Initialize progress reporter.

        Args:
            enabled: Explicitly enable/disable progress. None = auto-detect
        """
        if enabled is None:
            # Auto-detect: show progress if stderr is a terminal
            self.enabled = sys.stderr.isatty()
        else:
            self.enabled = enabled

        encoding = getattr(sys.stderr, 'encoding', None) or ''
        self.success_marker = '✓' if encoding.lower() in ['utf-8', 'utf8'] else '+'
        self.use_colors = sys.stderr.isatty() and os.environ.get('NO_COLOR') is None

    def _colorize(self, text: str, code: str) -> str:
        if self.use_colors:
            return f"\033[{code}m{text}\033[0m"
        return text

    def error(self, message: str):
        """Always output errors to stderr."""
        print(self._colorize(f"ERROR: {message}", '31'), file=sys.stderr, flush=True)

    def success(self, message: str):
        """Output success message if enabled."""
        if self.enabled:
            line = self._colorize(f"{self.success_marker} {message}", '32')
            print(line, file=sys.stderr, flush=True)

    @contextmanager
    def task(self, description: str):
        """
        Announce a task and report its duration.

        Example:
            with progress.task("Restoring dependencies"):
                service.restore(manifest_file, vendor_dir)
        """
        start = time.time()
        if self.enabled:
            print(f"{description}...", file=sys.stderr, flush=True)
        try:
            yield
        finally:
            if self.enabled:
                print(f"Completed in {time.time() - start:.1f}s", file=sys.stderr, flush=True)


_progress = None


def get_progress(enabled: Optional[bool] = None) -> ProgressReporter:
    """
    Get the progress reporter for this process.

    Args:
        enabled: Override auto-detection of progress display
    """
    global _progress
    if _progress is None or enabled is not None:
        _progress = ProgressReporter(enabled)
    return _progress


# Environment variable override
if os.environ.get('REPOVENDOR_PROGRESS') == '0':
    _progress = ProgressReporter(enabled=False)
elif os.environ.get('REPOVENDOR_PROGRESS') == '1':
    _progress = ProgressReporter(enabled=True)
