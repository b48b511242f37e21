from __future__ import annotations

import sys
from collections.abc import Callable
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display service with tqdm (TTY only).

The services report progress as a percentage through a plain callback
(ProgressCallback). ProgressTracker is the CLI-side observer: a single tqdm bar
scaled 0-100 that is disabled when stdout is not a TTY, so CI logs are not
spammed with ANSI control sequences.
"""

__all__ = [
    "ProgressCallback",
    "ProgressTracker",
    "is_tty_enabled",
]

ProgressCallback = Callable[[float], None]


def is_tty_enabled() -> bool:
    """Return True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class ProgressTracker:
    """Percentage progress bar for one phase (validation, renaming, registration)."""

    def __init__(self, description: str = "Processing") -> None:
        self.description = description
        self.percent = 0.0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=100,
                desc=description,
                unit="%",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
                bar_format="{l_bar}{bar}| {n:.0f}%",
            )
        else:
            self.pbar = None

    def report(self, percent: float) -> None:
        """Move the bar to ``percent`` (clamped to 0-100, never backwards)."""
        percent = max(0.0, min(100.0, percent))
        if percent <= self.percent:
            return
        if self.enabled and self.pbar is not None:
            self.pbar.update(percent - self.percent)
        self.percent = percent

    __call__ = report

    def set_postfix(self, **kwargs: Any) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
