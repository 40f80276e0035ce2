"""CLI entrypoints for restgen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError, RestgenConfig, load_config
from .logging import configure_logging, log_run_summary
from .task import GenerationTask

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ARTIFACT_ERRORS = 2


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_project_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project root holding .restgen.yml or pyproject.toml (defaults to current directory).",
    )
    parser.add_argument("--base-package", help="Dotted package whose modules are scanned for entities.")
    parser.add_argument(
        "--repository-package",
        help="Dotted package for generated repositories (defaults to <base-package>.repository).",
    )
    parser.add_argument("--source-root", help="Directory holding the base package (default: src).")
    parser.add_argument("--output-dir", help="Directory receiving generated modules (default: build/generated).")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="restgen",
        description="Generate CRUD repository interfaces for @rest_entity classes.",
    )
    _add_verbose_option(parser)
    parser.add_argument("--log-file", type=Path, help="Also write detailed logs to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Scan the source tree and write repository modules.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_project_options(generate_parser)
    generate_parser.add_argument(
        "--workers",
        type=int,
        help="Number of threads used to write repositories (default: 1).",
    )
    generate_parser.add_argument(
        "--force",
        action="store_true",
        help="Regenerate even when inputs are unchanged since the last run.",
    )
    generate_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 2 when any repository could not be written.",
    )

    check_parser = subparsers.add_parser(
        "check",
        help="Exit 0 when generated repositories are up to date, 1 otherwise.",
    )
    _add_verbose_option(check_parser, suppress_default=True)
    _add_project_options(check_parser)

    return parser


def _load_project_config(args: argparse.Namespace) -> RestgenConfig:
    config = load_config(Path(args.path))
    return config.with_overrides(
        base_package=args.base_package,
        repository_package=args.repository_package,
        source_root=args.source_root,
        output_dir=args.output_dir,
        max_workers=getattr(args, "workers", None),
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for restgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = _load_project_config(args)
        request = config.to_request()
    except ConfigError as exc:
        parser.exit(EXIT_FAILED, f"restgen: {exc}\n")

    task = GenerationTask(request, state_dir=config.state_path)

    if args.command == "check":
        if task.is_up_to_date():
            print("Repositories are up to date")
            parser.exit(EXIT_OK)
        print("Repositories need regeneration")
        parser.exit(EXIT_FAILED)

    if args.command == "generate":
        summary = task.run(force=bool(args.force))
        log_run_summary(summary)
        print(summary.describe())
        if not summary.ok:
            parser.exit(EXIT_FAILED, "Run with --verbose for more details.\n")
        if summary.artifacts_failed and args.strict:
            parser.exit(EXIT_ARTIFACT_ERRORS)
        return

    parser.exit(EXIT_FAILED, "Unknown command\n")  # pragma: no cover - argparse enforces choices


if __name__ == "__main__":
    main(sys.argv[1:])
