# preparator/codec.py
"""
Scripted step encoding.

A scripted step is a commit whose message carries the command that produced it:

    <user message>
    <blank line>
    preparator-command:
    ```
    <command>
    ```

Responsibilities:
- Encode (user message, command) into a commit message
- Decode a commit message into Manual | Scripted
- Classify a message by exact marker line match

This module does NOT:
- read commits from git
- run commands
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Union

# Persisted in commit messages. Never change these.
MARKER = "preparator-command:"
FENCE = "```"


@dataclass(frozen=True)
class Manual:
    message: str


@dataclass(frozen=True)
class Scripted:
    user_message: str
    command: str


Step = Union[Manual, Scripted]


def encode(user_message: str, command: str) -> str:
    return f"{user_message}\n\n{MARKER}\n{FENCE}\n{command}\n{FENCE}\n"


def decode(message: str) -> Step:
    """
    Parse a commit message.

    The marker must be a line of its own; the text before the blank line that
    precedes it is the user message, the fenced block after it is the command.
    """
    lines = message.split("\n")

    idx = _marker_index(lines)
    if idx is None:
        return Manual(message=message)

    user_lines = lines[:idx]
    if user_lines and user_lines[-1] == "":
        user_lines = user_lines[:-1]

    return Scripted(
        user_message="\n".join(user_lines),
        command="\n".join(_command_lines(lines[idx + 1 :])),
    )


def classify(message: str) -> bool:
    """
    True iff the message is a scripted step.
    """
    return _marker_index(message.split("\n")) is not None


def _marker_index(lines: List[str]) -> Optional[int]:
    for i, line in enumerate(lines):
        if line == MARKER:
            return i
    return None


def _command_lines(rest: List[str]) -> List[str]:
    if rest and rest[0] == FENCE:
        body = rest[1:]
        # the command itself may contain fence lines; the last one closes the block
        for i in range(len(body) - 1, -1, -1):
            if body[i] == FENCE:
                return body[:i]
        return body

    # no opening fence: keep every non-fence line after the marker
    body = [line for line in rest if FENCE not in line]
    while body and body[-1] == "":
        body.pop()
    return body
