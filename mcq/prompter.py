"""Interactive terminal prompts used by model selection and issue flows."""

from __future__ import annotations

import sys
from typing import Optional, Protocol, Sequence, TextIO


class UserPrompter(Protocol):
    def ask_yes_no(self, question: str, *, default: bool) -> bool:
        ...

    def ask_choice(self, question: str, options: Sequence[str]) -> int:
        ...

    def ask_line(self, question: str, *, default: str = "") -> str:
        ...


class ConsolePrompter:
    """Reads answers from stdin; read failures fall back to defaults where one exists."""

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout

    def ask_yes_no(self, question: str, *, default: bool) -> bool:
        hint = "Y/n" if default else "y/N"
        try:
            answer = self._read(f"{question} [{hint}]: ")
        except (EOFError, OSError):
            return default
        answer = answer.strip().lower()
        if not answer:
            return default
        return answer in {"y", "yes"}

    def ask_choice(self, question: str, options: Sequence[str]) -> int:
        """Return the 0-based index of the chosen option.

        Raises ``EOFError`` when no usable answer can be read and ``ValueError``
        when the number is outside ``1..len(options)``.
        """
        self._write(f"{question}\n")
        for index, option in enumerate(options, start=1):
            self._write(f"{index}. {option}\n")
        answer = self._read(f"Enter choice (1-{len(options)}): ").strip()
        try:
            choice = int(answer)
        except ValueError as exc:
            raise EOFError(f"unreadable choice: {answer!r}") from exc
        if choice < 1 or choice > len(options):
            raise ValueError(f"invalid choice. Please select 1-{len(options)}")
        return choice - 1

    def ask_line(self, question: str, *, default: str = "") -> str:
        prompt = f"{question} [{default}]: " if default else question
        try:
            answer = self._read(prompt)
        except (EOFError, OSError):
            self._write("\n⚠️  Warning: Failed to read input\n")
            return default
        return answer.strip() or default

    def _write(self, text: str) -> None:
        self._stdout.write(text)
        self._stdout.flush()

    def _read(self, prompt: str) -> str:
        self._write(prompt)
        line = self._stdin.readline()
        if not line:
            raise EOFError("no input available")
        return line.rstrip("\n")


__all__ = ["ConsolePrompter", "UserPrompter"]
