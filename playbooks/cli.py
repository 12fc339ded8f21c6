"""Playbooks command-line interface.

Usage:
    # List playbooks, optionally by scope
    playbooks list --scope task

    # Resolve the best playbook for a task
    playbooks resolve --task "fix broken imports" --package cli

    # Build the full prompt (skipping knowledge retrieval)
    playbooks build-prompt --task "fix broken imports" --skip-knowledge --show-layers

    # Use a custom playbooks directory, JSON output
    playbooks --dir ./playbooks build-prompt --task "debug plugin" --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from playbooks.composer.pipeline import build_prompt_for_task
from playbooks.documents.registry import PlaybookRegistry
from playbooks.documents.schemas import PlaybookScope
from playbooks.knowledge.capability import close_knowledge_capability, get_knowledge_capability
from playbooks.resolver.resolver import resolve
from playbooks.resolver.schemas import ResolveQuery

logger = logging.getLogger(__name__)


def _load_registry(args: argparse.Namespace) -> PlaybookRegistry:
    registry = PlaybookRegistry(args.dir)
    if registry.count() == 0:
        raise ValueError(f"No playbooks found in {registry.definitions_dir}")
    return registry


def cmd_list(args: argparse.Namespace) -> int:
    """List all available playbooks."""
    registry = PlaybookRegistry(args.dir)
    summaries = registry.list_summaries(scope=args.scope)

    if args.json:
        print(json.dumps({"playbooks": [s.model_dump(mode="json") for s in summaries]}, indent=2))
        return 0

    print(f"\nFound {len(summaries)} playbook(s):\n")
    for summary in summaries:
        print(f"  {summary.id}")
        print(f"    Scope: {summary.scope.value} | Priority: {summary.priority}")
        print(f"    Tags: {', '.join(summary.tags)}")
        print("")
    return 0


def cmd_resolve(args: argparse.Namespace) -> int:
    """Resolve the best playbook for a task."""
    try:
        query = ResolveQuery(
            task=args.task,
            package_name=args.package,
            domain=args.domain,
            error_pattern=args.error,
        )
    except ValidationError as e:
        logger.debug(f"Invalid resolve query: {e}")
        raise ValueError("Provide at least one of: --task, --package, --domain, or --error") from e

    registry = _load_registry(args)
    resolved = resolve(registry.list_all(), query)

    if resolved is None:
        if args.json:
            print(json.dumps({"resolved": None}, indent=2))
        else:
            print("\nNo matching playbook found.\n")
        return 0

    result = {
        "id": resolved.playbook.id,
        "score": resolved.score,
        "reason": resolved.reason,
        "description": resolved.playbook.description.strip(),
    }

    if args.json:
        print(json.dumps({"resolved": result}, indent=2))
    else:
        print("\nResolved playbook:\n")
        print(f"  ID: {result['id']}")
        print(f"  Score: {result['score']}")
        print(f"  Reason: {result['reason']}")
        print(f"  Description: {result['description']}")
        print("")
    return 0


def cmd_build_prompt(args: argparse.Namespace) -> int:
    """Build the full layered prompt for a task."""
    registry = _load_registry(args)

    try:
        built = build_prompt_for_task(
            args.task,
            registry.list_all(),
            package_name=args.package,
            capability=get_knowledge_capability(),
            cwd=Path.cwd(),
            skip_knowledge=args.skip_knowledge,
        )
    finally:
        close_knowledge_capability()
    if built is None:
        raise ValueError(f"No playbook matched task: {args.task}")

    if args.json:
        payload = {
            "playbook_id": built.playbook_id,
            "full_prompt": built.full_prompt,
            "token_count": built.token_count,
        }
        if args.show_layers:
            payload["layers"] = {layer.value: text for layer, text in built.layers.items()}
        print(json.dumps(payload, indent=2))
        return 0

    if args.show_layers:
        print("\nPrompt Layers:\n")
        for layer, text in built.layers.items():
            if text:
                print(f"\n=== {layer.value.upper()} ===\n")
                print(text)
        print("\n" + "=" * 60 + "\n")

    print("\nFull Prompt:\n")
    print(built.full_prompt)
    print(f"\nToken count: ~{built.token_count}\n")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="playbooks",
        description="Resolve playbooks and build prompts for AI coding agents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--dir",
        type=Path,
        default=None,
        help="Playbooks directory (default: $PLAYBOOKS_DIR, else bundled playbooks)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List available playbooks")
    list_parser.add_argument(
        "--scope",
        choices=[s.value for s in PlaybookScope],
        help="Only list playbooks in this scope",
    )
    list_parser.add_argument("--json", action="store_true", help="JSON output")
    list_parser.set_defaults(handler=cmd_list)

    resolve_parser = subparsers.add_parser("resolve", help="Resolve the best playbook for a task")
    resolve_parser.add_argument("--task", help="Task description")
    resolve_parser.add_argument("--package", help="Target package name")
    resolve_parser.add_argument("--domain", help="Domain (e.g., refactoring)")
    resolve_parser.add_argument("--error", help="Error signature to match")
    resolve_parser.add_argument("--json", action="store_true", help="JSON output")
    resolve_parser.set_defaults(handler=cmd_resolve)

    build_prompt_parser = subparsers.add_parser("build-prompt", help="Build the layered prompt for a task")
    build_prompt_parser.add_argument("--task", required=True, help="Task description")
    build_prompt_parser.add_argument("--package", help="Target package name")
    build_prompt_parser.add_argument(
        "--skip-knowledge",
        action="store_true",
        help="Do not query the knowledge service for context",
    )
    build_prompt_parser.add_argument(
        "--show-layers",
        action="store_true",
        help="Show individual prompt layers",
    )
    build_prompt_parser.add_argument("--json", action="store_true", help="JSON output")
    build_prompt_parser.set_defaults(handler=cmd_build_prompt)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return args.handler(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
