# preparator/cli.py
"""preparator CLI.

Maintains branches mixing manual commits and scripted steps, re-running the
scripted steps whenever history is rewritten.
"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys
from typing import Callable, List, Optional

from preparator import rewrite
from preparator.apply import CommandFailed, command_from_arg
from preparator.config import ConfigError
from preparator.context import PreconditionFailed, RepositoryContext, build_context
from preparator.prompt import NoAnswer
from preparator.replay import ReplayConflict, cherry_pick, commits_in_range
from preparator.repo import GitRepositoryError
from preparator.selector import SelectorResolutionError
from preparator.steps import build_entries, render_steps_report
from preparator.validation import ValidationError


USAGE = """\
Usage: preparator [--repo <path>] [--config <path>] <command> <arguments....>

Supported commands:
 add <msg> [<cmd> | <path> | - ]
 cherry-pick [<commit> | <first-commit> <last-commit>]
 rebase [<new-base> [<branch>]]
 amend <step> [<git commit --amend arguments>...]
 edit <step> [<msg>] [<cmd> | <path> | - ]
 list [<base>] [--hash-len <n>]"""


class UsageError(RuntimeError):
    pass


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def _cmd_add(ctx: RepositoryContext, args: argparse.Namespace) -> int:
    rewrite.add(ctx, args.msg, command_from_arg(args.cmd))
    return 0


def _cmd_cherry_pick(ctx: RepositoryContext, args: argparse.Namespace) -> int:
    cherry_pick(ctx, commits_in_range(ctx, args.first, args.last))
    return 0


def _cmd_rebase(ctx: RepositoryContext, args: argparse.Namespace) -> int:
    rewrite.rebase(ctx, args.new_base, args.branch)
    return 0


def _cmd_amend(ctx: RepositoryContext, args: argparse.Namespace) -> int:
    rewrite.amend(ctx, args.step, args.amend_args)
    return 0


def _cmd_edit(ctx: RepositoryContext, args: argparse.Namespace) -> int:
    if len(args.rest) > 2:
        raise UsageError("edit takes at most a message and a command")

    if len(args.rest) == 2:
        msg: Optional[str] = args.rest[0]
    else:
        msg = None

    rewrite.edit(ctx, args.step, command_from_arg(args.rest[-1]), user_message=msg)
    return 0


def _cmd_list(ctx: RepositoryContext, args: argparse.Namespace) -> int:
    if int(args.hash_len) <= 0:
        raise UsageError("--hash-len must be a positive integer")

    base = args.base or ctx.config.base
    entries = build_entries(ctx, base, hash_len=int(args.hash_len))

    print(
        render_steps_report(
            branch=ctx.branch,
            base=base,
            entries=entries,
            hash_len=int(args.hash_len),
        )
    )
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="preparator",
        description="Rebase, cherry-pick and edit branches whose commits are re-runnable scripted steps",
    )

    parser.add_argument(
        "--repo",
        default=".",
        help="Path to the git repository (default: current directory)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML config file (default: <repo>/.preparator.yaml if present)",
    )

    sub = parser.add_subparsers(dest="command", metavar="<command>")
    sub.required = True

    p = sub.add_parser("add", help="Run a command and commit its output as a scripted step")
    p.add_argument("msg", help="Commit message")
    p.add_argument("cmd", help="Command, path to a file holding it, or '-' for stdin")
    p.set_defaults(handler=_cmd_add)

    p = sub.add_parser("cherry-pick", help="Replay commits, re-running scripted steps")
    p.add_argument("first", help="Commit, or first commit of an inclusive range")
    p.add_argument("last", nargs="?", default=None, help="Last commit of the range")
    p.set_defaults(handler=_cmd_cherry_pick)

    p = sub.add_parser("rebase", help="Rebuild a branch on a new base")
    p.add_argument("new_base", nargs="?", default=None, help="New base (default: configured base)")
    p.add_argument("branch", nargs="?", default=None, help="Branch to rebase (default: current)")
    p.set_defaults(handler=_cmd_rebase)

    p = sub.add_parser("amend", help="Amend a manual commit and replay what follows it")
    p.add_argument("step", help="Selector: +n, -n or a commit-ish")
    p.add_argument("amend_args", nargs=argparse.REMAINDER, help="Passed to git commit --amend")
    p.set_defaults(handler=_cmd_amend)

    p = sub.add_parser("edit", help="Change a scripted step and replay what follows it")
    p.add_argument("step", help="Selector: +n, -n or a commit-ish")
    p.add_argument("rest", nargs="+", metavar="[msg] cmd", help="Optional new message, then the command")
    p.set_defaults(handler=_cmd_edit)

    p = sub.add_parser("list", help="Show the commits since the fork point")
    p.add_argument("base", nargs="?", default=None, help="Base branch (default: configured base)")
    p.add_argument(
        "--hash-len",
        type=int,
        default=12,
        help="Number of characters to show for commit hash",
    )
    p.set_defaults(handler=_cmd_list)

    return parser


def _usage(e: UsageError) -> int:
    print(f"error: {e}", file=sys.stderr)
    print(file=sys.stderr)
    print(USAGE, file=sys.stderr)
    return 1


def main(argv: List[str] | None = None, input_fn: Callable[[str], str] = input) -> int:
    try:
        args = _build_parser().parse_args(argv)
    except UsageError as e:
        return _usage(e)

    config_path = Path(args.config).expanduser().resolve() if args.config else None

    try:
        ctx = build_context(Path(args.repo), config_path, input_fn)
        return args.handler(ctx, args)

    except UsageError as e:
        return _usage(e)

    except (
        ConfigError,
        ValidationError,
        GitRepositoryError,
        PreconditionFailed,
        NoAnswer,
        SelectorResolutionError,
        CommandFailed,
        ReplayConflict,
    ) as e:
        print(f"error: {e}", file=sys.stderr)
        hint = getattr(e, "hint", None)
        if hint:
            print(f"hint: {hint}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
