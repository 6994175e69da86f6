"""CLI entrypoints for promptenhance commands."""

from __future__ import annotations

import argparse
from dataclasses import asdict
import json
from pathlib import Path
from typing import List

from .config import ConfigError, load_config
from .logging import configure_logging
from .models import EnhanceOptions, ProjectContext, RequestContext
from .pipeline import PromptEnhancer


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


def _add_context_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--framework", help="Framework to use instead of detecting one.")
    parser.add_argument(
        "--fact",
        action="append",
        default=[],
        dest="facts",
        help="Repository fact to include (repeatable).",
    )
    parser.add_argument(
        "--snippet-file",
        action="append",
        default=[],
        dest="snippet_files",
        type=Path,
        help="File whose contents are passed as a code snippet (repeatable).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="promptenhance",
        description="Enhance prompts with framework documentation and project context.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("."),
        help="Directory or path of .promptenhance.yml (defaults to current directory).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    enhance_parser = subparsers.add_parser("enhance", help="Enhance a prompt.")
    _add_verbose_option(enhance_parser, suppress_default=True)
    _add_context_options(enhance_parser)
    enhance_parser.add_argument("prompt", help="Prompt text to enhance.")
    enhance_parser.add_argument(
        "--max-tokens",
        type=int,
        default=None,
        help="Upper bound on tokens appended to the prompt.",
    )
    enhance_parser.add_argument(
        "--metadata",
        action="store_true",
        help="Include classification and retrieval metadata in JSON output.",
    )
    enhance_parser.add_argument(
        "--json",
        action="store_true",
        dest="as_json",
        help="Print the full result as JSON.",
    )

    classify_parser = subparsers.add_parser("classify", help="Classify prompt complexity.")
    _add_verbose_option(classify_parser, suppress_default=True)
    classify_parser.add_argument("prompt", help="Prompt text to classify.")

    breakdown_parser = subparsers.add_parser(
        "breakdown", help="Split a large prompt into tasks."
    )
    _add_verbose_option(breakdown_parser, suppress_default=True)
    _add_context_options(breakdown_parser)
    breakdown_parser.add_argument("prompt", help="Prompt text to decompose.")
    breakdown_parser.add_argument(
        "--force",
        action="store_true",
        help="Decompose even when the prompt does not look large enough.",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for promptenhance commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "serve":
        from .service import run_service

        run_service(
            host=args.host,
            port=args.port,
            enhancer_factory=lambda: PromptEnhancer.from_config(config),
        )
        return

    enhancer = PromptEnhancer.from_config(config)

    if args.command == "enhance":
        try:
            context = _request_context(args)
        except OSError as exc:
            parser.exit(1, f"Failed to read snippet file: {exc}\n")
        options = EnhanceOptions(
            max_tokens=args.max_tokens,
            include_metadata=bool(args.metadata),
            use_cache=enhancer.cache is not None,
        )
        result = enhancer.enhance(args.prompt, context, options)
        if args.as_json:
            print(json.dumps(result.to_dict(), indent=2, default=str))
        else:
            print(result.enhanced_prompt)
        if not result.success:
            parser.exit(
                1,
                f"promptenhance enhance failed: {result.error}\n"
                "Run with --verbose for more details.\n",
            )
    elif args.command == "classify":
        assessment = enhancer.assess(args.prompt)
        print(json.dumps(asdict(assessment), indent=2))
    elif args.command == "breakdown":
        try:
            context = _request_context(args)
        except OSError as exc:
            parser.exit(1, f"Failed to read snippet file: {exc}\n")
        tasks = enhancer.breakdown(args.prompt, context, True if args.force else None)
        if not tasks:
            print("Prompt does not need a task breakdown")
            return
        print(json.dumps([asdict(task) for task in tasks], indent=2))
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _request_context(args: argparse.Namespace) -> RequestContext:
    snippets: List[str] = [
        path.read_text(encoding="utf-8") for path in args.snippet_files
    ]
    project = None
    if args.facts or snippets:
        project = ProjectContext(repo_facts=list(args.facts), code_snippets=snippets)
    return RequestContext(framework=args.framework, project_context=project)


if __name__ == "__main__":  # pragma: no cover
    main()
