"""Subprocess helpers for git history and clipboard access."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from .logging import get_logger

_CLIPBOARD_COMMANDS: Sequence[Sequence[str]] = (
    ("pbcopy",),
    ("wl-copy",),
    ("xclip", "-selection", "clipboard"),
)


class SystemCalls:
    """Wraps the handful of external commands mcq shells out to."""

    def __init__(
        self,
        runner: Callable[..., str] | None = None,
        *,
        cwd: Path | None = None,
        which: Callable[[str], Optional[str]] | None = None,
    ) -> None:
        self._runner = runner or self._default_runner
        self._which = which or shutil.which
        self.cwd = cwd or Path.cwd()
        self._logger = get_logger("system")

    def git_log(self, max_commits: int) -> List[str]:
        """Return up to ``max_commits`` one-line commit summaries, newest first."""
        output = self._run(["git", "log", "--oneline", f"-n{max_commits}"])
        return [line for line in output.strip().splitlines() if line.strip()]

    def copy_to_clipboard(self, text: str) -> str:
        """Copy ``text`` with the first available clipboard tool and return its name."""
        for command in _CLIPBOARD_COMMANDS:
            if self._which(command[0]) is None:
                continue
            self._logger.debug("Copying %d characters with %s", len(text), command[0])
            self._run(list(command), input_text=text)
            return command[0]
        raise RuntimeError("clipboard unavailable: install pbcopy, wl-copy or xclip")

    def _run(self, args: Iterable[str], *, input_text: str | None = None) -> str:
        try:
            return self._runner(args, cwd=self.cwd, input_text=input_text)
        except FileNotFoundError as exc:
            raise RuntimeError(f"command not found: {exc.filename or list(args)[0]}") from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            raise RuntimeError(
                f"{' '.join(exc.cmd)} failed with exit code {exc.returncode}: {stderr}"
            ) from exc

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        input_text: str | None = None,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            input=input_text,
            check=True,
            text=True,
            capture_output=True,
        )
        return completed.stdout


__all__ = ["SystemCalls"]
