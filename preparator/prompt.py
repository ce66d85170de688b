# preparator/prompt.py
"""
Operator confirmation for files a scripted command created.

Responsibilities:
- Ask whether newly created untracked files join the commit
- Map the untracked_files policy (ask | add | skip) to a confirmation callback

This module does NOT:
- detect untracked files
- stage or commit anything
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

InputFn = Callable[[str], str]
Confirm = Callable[[Sequence[str]], bool]


class NoAnswer(RuntimeError):
    """
    The operator could not be asked (stdin closed).

    Attributes:
        hint: follow-up suggestion shown to the operator
    """

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        self.hint = hint
        super().__init__(message)


def ask_add_untracked(paths: Sequence[str], input_fn: InputFn = input) -> bool:
    """
    Show the new files and ask whether to add them. Re-asks until y/Y/n/N.
    """
    print("The following new, non-ignored, files were created:")
    print()
    for p in paths:
        print(p)
    print()
    print("Do you want to add them to the new commit? [y/n]")
    print()

    while True:
        try:
            answer = input_fn("").strip()
        except EOFError as e:
            raise NoAnswer(
                "no answer to the untracked-files prompt (stdin closed)",
                hint="set 'untracked_files: add' or 'untracked_files: skip' in .preparator.yaml",
            ) from e

        if answer in ("y", "Y"):
            return True
        if answer in ("n", "N"):
            return False
        print("invalid answer.")


def confirm_for_policy(policy: str, input_fn: InputFn = input) -> Confirm:
    """
    Build the confirmation callback for an untracked_files policy (ask | add | skip).
    """
    if policy == "add":
        return lambda paths: True

    if policy == "skip":
        return lambda paths: False

    return lambda paths: ask_add_untracked(paths, input_fn)
