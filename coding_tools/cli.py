"""
`coding-tools` command line.

Commands
--------
coding-tools search PATTERN TARGET...            -- literal / regex search
coding-tools search PATTERN TARGET... --regex
coding-tools diff ORIGINAL MODIFIED              -- unified diff of two files
coding-tools edit EDITS_FILE                     -- apply a batch of edits
coding-tools edit EDITS_FILE --dry-run           -- preview only
coding-tools edit EDITS_FILE --review            -- preview, approve, then apply
coding-tools stats                               -- edit metrics journal summary
coding-tools config                              -- show the resolved settings

Exit codes: 0 success, 1 batch with failed edits, 2 invalid input.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

import yaml

from .cli_display import (
    ProgressBar,
    print_batch_result,
    print_diff_result,
    print_search_result,
    setup_logger,
)
from .config import Config
from .editing.batch_editor import BatchEditor
from .editing.boundary import read_text
from .editing.diff_engine import DiffEngine
from .editing.metrics import read_edit_stats
from .editing.models import EditOperation
from .search.pattern_search import PatternSearch

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_request(path: str) -> dict:
    """Read an edits file (JSON or YAML).

    The file holds either a list of edit operations or a request object
    with an ``edits`` key plus optional ``dryRun`` / ``createBackup`` /
    ``projectRoot`` / ``maxFileSize``.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)  # JSON is a subset of YAML
    if isinstance(data, list):
        data = {"edits": data}
    if not isinstance(data, dict) or not isinstance(data.get("edits"), list):
        raise ValueError(f"{path}: expected a list of edits or an object with 'edits'")
    return data


def _print_json(data: dict) -> None:
    print(json.dumps(data, indent=2))


# ---------------------------------------------------------------------------
# Sub-command handlers
# ---------------------------------------------------------------------------

def _cmd_search(args: argparse.Namespace, cfg: Config) -> int:
    searcher = PatternSearch(exclude_dirs=cfg.EXCLUDE_DIRS)
    bar = ProgressBar("Searching", unit="file", disable=args.json)
    try:
        result = searcher.search(
            args.pattern,
            args.targets,
            is_regex=args.regex,
            case_sensitive=(args.case_sensitive if args.case_sensitive is not None
                            else cfg.CASE_SENSITIVE),
            max_results=args.max_results if args.max_results is not None else cfg.MAX_RESULTS,
            include_context=not args.no_context,
            context_lines=(args.context_lines if args.context_lines is not None
                           else cfg.CONTEXT_LINES),
            max_file_size=cfg.MAX_FILE_SIZE,
            progress=bar,
        )
    finally:
        bar.close()

    if args.json:
        _print_json(result.to_dict())
    else:
        print_search_result(result)
    return EXIT_OK


def _cmd_diff(args: argparse.Namespace, cfg: Config) -> int:
    original = read_text(args.original)
    modified = read_text(args.modified)
    context = args.context if args.context is not None else cfg.DIFF_CONTEXT
    result = DiffEngine(context=context).diff(
        original, modified, filename=os.path.basename(args.original),
    )
    if args.json:
        _print_json(result.to_dict())
    else:
        print_diff_result(result)
    return EXIT_OK


def _cmd_edit(args: argparse.Namespace, cfg: Config) -> int:
    request = _load_request(args.edits_file)
    edits = [EditOperation.from_dict(e) for e in request["edits"]]

    project_root = args.project_root or request.get("projectRoot") or cfg.PROJECT_ROOT
    if args.no_backup:
        create_backup = False
    else:
        create_backup = bool(request.get("createBackup", cfg.CREATE_BACKUP))
    dry_run = args.dry_run or bool(request.get("dryRun", False))

    def _editor(preview: bool, progress=None) -> BatchEditor:
        return BatchEditor(
            project_root,
            dry_run=preview,
            create_backup=create_backup,
            max_file_size=int(request.get("maxFileSize") or cfg.MAX_FILE_SIZE),
            diff_context=cfg.DIFF_CONTEXT,
            progress=progress,
            metrics=cfg.METRICS_ENABLED,
        )

    if args.review and not dry_run:
        from .diff_display import prompt_review

        preview = _editor(preview=True).run(edits)
        if not prompt_review(preview, auto=args.auto):
            print("Edits rejected, nothing written.")
            if args.json:
                _print_json(preview.to_dict())
            return EXIT_OK if preview.success else EXIT_FAILED

    bar = ProgressBar("Editing", unit="edit", disable=args.json)
    try:
        result = _editor(preview=dry_run, progress=bar).run(edits)
    finally:
        bar.close()

    if args.json:
        _print_json(result.to_dict())
    else:
        print_batch_result(result)
    return EXIT_OK if result.success else EXIT_FAILED


def _cmd_config(args: argparse.Namespace, cfg: Config) -> int:
    data = cfg.to_dict()
    if args.json:
        _print_json({"source": cfg.SOURCE, "settings": data})
        return EXIT_OK
    print(f"\nConfig file: {cfg.SOURCE or '(none, defaults and environment only)'}")
    for key, value in data.items():
        print(f"  {key:<16} {value}")
    return EXIT_OK


def _cmd_stats(args: argparse.Namespace, cfg: Config) -> int:
    stats = read_edit_stats(last_n=args.last, project_root=cfg.PROJECT_ROOT)
    if args.json:
        _print_json(stats)
        return EXIT_OK
    print(
        f"\nEdit metrics (last {args.last} run(s)):\n"
        f"  Runs:      {stats['total_runs']}\n"
        f"  Edits:     {stats['total_edits']}\n"
        f"  Applied:   {stats['apply_rate']:.1f}%\n"
        f"  Skipped:   {stats['skip_rate']:.1f}%\n"
        f"  Failed:    {stats['failure_rate']:.1f}%\n"
        f"  Rollbacks: {stats['rollback_rate']:.1f}% of runs"
    )
    return EXIT_OK


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--json", action="store_true",
                        help="Print the raw JSON result")

    parser = argparse.ArgumentParser(
        prog="coding-tools",
        description="Code search, diff review and batch multi-file editing",
    )
    parser.add_argument("--config", default=None,
                        help="Path to .coding-tools.yaml config file")
    sub = parser.add_subparsers(dest="command", required=True)

    p_search = sub.add_parser("search", parents=[common], help="Search files for a pattern")
    p_search.add_argument("pattern", help="Literal text or regex")
    p_search.add_argument("targets", nargs="+", help="Files, directories or globs")
    p_search.add_argument("--regex", action="store_true",
                          help="Treat the pattern as an RE2 regex")
    case = p_search.add_mutually_exclusive_group()
    case.add_argument("--case-sensitive", dest="case_sensitive", action="store_const",
                      const=True, default=None,
                      help="Case-sensitive matching (default: from config)")
    case.add_argument("--ignore-case", dest="case_sensitive", action="store_const",
                      const=False, help="Case-insensitive matching")
    p_search.add_argument("--max-results", type=int, default=None,
                          help="Maximum matches to return (default: from config)")
    p_search.add_argument("--context-lines", type=int, default=None,
                          help="Context lines around each match (default: from config)")
    p_search.add_argument("--no-context", action="store_true",
                          help="Omit context lines")

    p_diff = sub.add_parser("diff", parents=[common], help="Unified diff of two files")
    p_diff.add_argument("original")
    p_diff.add_argument("modified")
    p_diff.add_argument("--context", type=int, default=None,
                        help="Context lines around changes (default: from config)")

    p_edit = sub.add_parser("edit", parents=[common], help="Apply a batch of find/replace edits")
    p_edit.add_argument("edits_file", help="JSON or YAML file with the edits")
    p_edit.add_argument("--dry-run", action="store_true",
                        help="Preview changes without writing")
    p_edit.add_argument("--no-backup", action="store_true",
                        help="Do not create .bak files")
    p_edit.add_argument("--project-root", default=None,
                        help="Edit boundary (default: from config, else CWD)")
    p_edit.add_argument("--review", action="store_true",
                        help="Show a dry-run preview and apply only on approval")
    p_edit.add_argument("--auto", action="store_true",
                        help="With --review: approve without prompting")

    p_stats = sub.add_parser("stats", parents=[common], help="Show edit metrics")
    p_stats.add_argument("--last", type=int, default=50,
                         help="Number of recent runs to include")

    sub.add_parser("config", parents=[common], help="Show the resolved settings")

    return parser


_HANDLERS = {
    "search": _cmd_search,
    "diff": _cmd_diff,
    "edit": _cmd_edit,
    "stats": _cmd_stats,
    "config": _cmd_config,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    cfg = Config.load(args.config)
    setup_logger(cfg.LOG_DIR)

    try:
        return _HANDLERS[args.command](args, cfg)
    except (ValueError, KeyError, OSError, yaml.YAMLError) as exc:
        logger.error("[CLI] %s failed: %s", args.command, exc)
        print(f"\n  [ERROR] {exc}\n", file=sys.stderr)
        return EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
