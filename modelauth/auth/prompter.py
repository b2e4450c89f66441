"""Interaction context used by auth methods to talk to the user.

Auth methods never touch the terminal directly. They receive an
:class:`InteractionContext` exposing two capabilities:

- ``await ctx.text(spec)`` asks for one value and only returns once the
  value passes ``spec.validate``.
- ``ctx.progress(label)`` starts a status indicator for a long-running call
  and returns a handle whose ``stop(label)`` ends it.

:class:`ConsolePrompter` is the live implementation (questionary prompts,
rich status spinner). :class:`ScriptedPrompter` answers from a queue; the CLI
uses it for non-interactive logins and the test-suite uses it everywhere.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

import questionary
from loguru import logger
from rich.console import Console

from modelauth.auth.errors import AuthCancelledError, ValidationError

console = Console()

Validator = Callable[[str], str | None]


@dataclass(frozen=True)
class TextPromptSpec:
    """One text question."""
    message: str
    placeholder: str | None = None
    default: str = ""
    secret: bool = False
    validate: Validator | None = None

    def check(self, value: str) -> str | None:
        """Run the validator; return its error message or None."""
        if self.validate is None:
            return None
        return self.validate(value)


class ProgressHandle(ABC):
    """A running status indicator."""

    @abstractmethod
    def stop(self, label: str) -> None:
        """End the indicator, showing ``label`` as its final state."""


class InteractionContext(ABC):
    """Capabilities an auth method may use while it runs."""

    @abstractmethod
    async def text(self, spec: TextPromptSpec) -> str:
        """Ask for a value. Re-asks until ``spec.validate`` accepts it.

        Raises:
            AuthCancelledError: If the user aborts instead of answering.
        """

    @abstractmethod
    def progress(self, label: str) -> ProgressHandle:
        """Start a status indicator for a long-running external call."""


@contextmanager
def track_progress(ctx: InteractionContext, label: str, done: str, failed: str) -> Iterator[ProgressHandle]:
    """Bracket a block with a progress indicator.

    The indicator is stopped exactly once: with ``done`` when the block
    completes and with ``failed`` when it raises (cancellation included).
    """
    handle = ctx.progress(label)
    final_label = failed
    try:
        yield handle
        final_label = done
    finally:
        handle.stop(final_label)


# ---------------------------------------------------------------------------
# Live terminal implementation
# ---------------------------------------------------------------------------

_STYLE = questionary.Style([
    ('qmark', 'fg:cyan bold'),
    ('question', 'bold'),
    ('answer', 'fg:green'),
    ('instruction', 'fg:#888888'),
])


class _StatusHandle(ProgressHandle):
    def __init__(self, label: str, out: Console):
        self._console = out
        self._status = out.status(label, spinner="dots")
        self._status.start()
        self._stopped = False

    def stop(self, label: str) -> None:
        if self._stopped:
            return
        self._stopped = True
        self._status.stop()
        self._console.print(f"│  {label}")


class ConsolePrompter(InteractionContext):
    """Terminal prompter built on questionary and rich."""

    def __init__(self, out: Console | None = None):
        self.console = out or console

    async def text(self, spec: TextPromptSpec) -> str:
        def _validate(value: str) -> bool | str:
            error = spec.check(value)
            return True if error is None else error

        instruction = f"(e.g. {spec.placeholder})" if spec.placeholder else None
        if spec.secret:
            question = questionary.password(spec.message, default=spec.default, validate=_validate, style=_STYLE)
        else:
            question = questionary.text(
                spec.message,
                default=spec.default,
                validate=_validate,
                instruction=instruction,
                style=_STYLE,
            )

        try:
            answer = await question.unsafe_ask_async()
        except (KeyboardInterrupt, EOFError) as e:
            raise AuthCancelledError("Authentication cancelled.") from e

        if answer is None:
            raise AuthCancelledError("Authentication cancelled.")
        return answer

    def progress(self, label: str) -> ProgressHandle:
        return _StatusHandle(label, self.console)


# ---------------------------------------------------------------------------
# Scripted implementation
# ---------------------------------------------------------------------------

@dataclass
class ProgressEvent:
    label: str
    stop_labels: list[str] = field(default_factory=list)


class _RecordingHandle(ProgressHandle):
    def __init__(self, event: ProgressEvent):
        self._event = event

    def stop(self, label: str) -> None:
        self._event.stop_labels.append(label)


class ScriptedPrompter(InteractionContext):
    """Answers prompts from a fixed queue.

    Each answer is checked with the prompt's validator the way a user's
    input would be. A rejected answer is recorded in ``rejections`` and the
    next queued answer is tried, mirroring a user retyping. Running out of
    answers counts as the user aborting.
    """

    def __init__(self, answers: Iterable[str] = ()):
        self._answers: deque[str] = deque(answers)
        self.prompts: list[TextPromptSpec] = []
        self.rejections: list[tuple[str, str]] = []
        self.progress_events: list[ProgressEvent] = []

    async def text(self, spec: TextPromptSpec) -> str:
        self.prompts.append(spec)
        while self._answers:
            answer = self._answers.popleft()
            if answer == "" and spec.default:
                answer = spec.default
            try:
                self._check(spec, answer)
            except ValidationError as e:
                logger.debug(f"Rejected answer for '{spec.message}': {e}")
                self.rejections.append((spec.message, str(e)))
                continue
            return answer
        raise AuthCancelledError(f"No answer for prompt: {spec.message}")

    @staticmethod
    def _check(spec: TextPromptSpec, answer: str) -> None:
        error = spec.check(answer)
        if error is not None:
            raise ValidationError(error)

    def progress(self, label: str) -> ProgressHandle:
        event = ProgressEvent(label=label)
        self.progress_events.append(event)
        return _RecordingHandle(event)
