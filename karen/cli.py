"""CLI entrypoint for karen reviews."""

from __future__ import annotations

import argparse
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Mapping

from .actions import set_output
from .context import ActionInputs, RunContext
from .errors import KarenError
from .logging import configure_logging, get_logger
from .orchestrator import MODES, Orchestrator, RunOutcome

logger = get_logger("cli")


def _add_bool_option(parser: argparse.ArgumentParser, name: str, help_text: str) -> None:
    parser.add_argument(
        f"--{name}",
        dest=name.replace("-", "_"),
        action=argparse.BooleanOptionalAction,
        default=None,
        help=help_text,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="karen",
        description="Brutally honest AI review of a repository, published as CI artifacts.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    review_parser = subparsers.add_parser(
        "review",
        help="Review the repository and publish score, report, history and badge.",
        description="Options fall back to the INPUT_* variables set by GitHub Actions.",
    )
    review_parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Repository root (defaults to $GITHUB_WORKSPACE or the current directory).",
    )
    review_parser.add_argument(
        "--provider",
        choices=("auto", "anthropic", "openai"),
        default=None,
        help="Model provider; 'auto' picks the one whose API key is set.",
    )
    review_parser.add_argument("--model", default=None, help="Override the provider's default model.")
    review_parser.add_argument(
        "--mode",
        choices=MODES,
        default=None,
        help="'dry-run' reviews without writing artifacts or posting comments.",
    )
    review_parser.add_argument(
        "--min-score",
        type=int,
        default=None,
        help="Warn (never fail) when the score is below this threshold.",
    )
    _add_bool_option(review_parser, "generate-badge", "Write .karen/badges/score-badge.svg.")
    _add_bool_option(review_parser, "auto-update-readme", "Merge the badge block into README.md.")
    _add_bool_option(review_parser, "post-comment", "Comment on the triggering pull request.")

    return parser


def _resolve_inputs(args: argparse.Namespace, environ: Mapping[str, str]) -> ActionInputs:
    inputs = ActionInputs.from_env(environ)
    overrides = {
        "ai_provider": args.provider,
        "model": args.model,
        "mode": args.mode,
        "min_score": args.min_score,
        "generate_badge": args.generate_badge,
        "auto_update_readme": args.auto_update_readme,
        "post_comment": args.post_comment,
    }
    return replace(inputs, **{key: value for key, value in overrides.items() if value is not None})


def _emit_outputs(outcome: RunOutcome, environ: Mapping[str, str]) -> None:
    set_output("karen_score", outcome.review.score.total, environ)
    set_output("karen_grade", outcome.review.score.grade, environ)
    published = outcome.publish
    if published is not None and published.review_path is not None:
        set_output("review_path", published.review_path, environ)
    if published is not None and published.badge_path is not None:
        set_output("badge_path", published.badge_path, environ)


def main(
    argv: list[str] | None = None,
    environ: Mapping[str, str] | None = None,
    orchestrator: Orchestrator | None = None,
) -> None:
    """CLI entrypoint for karen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    env = os.environ if environ is None else environ

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command != "review":  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")

    context = RunContext.from_env(env, workspace=args.path)
    inputs = _resolve_inputs(args, env)
    try:
        outcome = (orchestrator or Orchestrator()).run(context, inputs)
        _emit_outputs(outcome, env)
    except KarenError as exc:
        logger.error("Karen encountered an error: %s", exc)
        parser.exit(1)
    except Exception as exc:  # pragma: no cover - defensive guard
        logger.error("Karen encountered an unexpected error: %s", exc, exc_info=bool(args.verbose))
        parser.exit(1, "Run with --verbose for more details.\n")

    if outcome.publish is not None and outcome.publish.failures:
        logger.warning("Some artifacts were not published: %s", "; ".join(outcome.publish.failures))
    logger.info("Karen review complete!")


if __name__ == "__main__":
    main(sys.argv[1:])
