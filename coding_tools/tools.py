"""
Tool registry: exposes the search, diff and batch-edit components as
agent-callable tools with JSON-schema-validated input and JSON output.

Example usage::

    from coding_tools.tools import run_tool

    result = run_tool("coding:multiStringEdit", {
        "edits": [{"filePath": "src/app.py", "oldString": "foo", "newString": "bar"}],
        "dryRun": True,
    })
    print(result["summary"])
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import Config
from .editing.batch_editor import BatchEditor
from .editing.diff_engine import DiffEngine
from .editing.models import EditOperation
from .progress import ProgressCallback
from .search.pattern_search import PatternSearch

logger = logging.getLogger(__name__)


class ToolInputError(ValueError):
    """Raised when a tool payload does not match the tool's input schema."""


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class EditOperationInput(_Request):
    file_path: str = Field(alias="filePath", description="Absolute path to the file to edit")
    old_string: str = Field(
        alias="oldString", min_length=1,
        description="Exact text to find and replace (or regex pattern)",
    )
    new_string: str = Field(
        alias="newString",
        description=(
            "Text to replace oldString with. With useRegex, group references use "
            "Python/RE2 template syntax (\\1, \\g<1>, \\g<name>); $1 and $& are literal"
        ),
    )
    use_regex: bool = Field(False, alias="useRegex", description="Treat oldString as a regex pattern")
    replace_all: bool = Field(
        False, alias="replaceAll", description="Replace all occurrences (default: false)",
    )
    description: Optional[str] = Field(None, description="Explanation of this change")

    def to_operation(self) -> EditOperation:
        return EditOperation(
            file_path=self.file_path,
            old_string=self.old_string,
            new_string=self.new_string,
            use_regex=self.use_regex,
            replace_all=self.replace_all,
            description=self.description,
        )


class MultiStringEditInput(_Request):
    edits: list[EditOperationInput] = Field(
        min_length=1, description="Array of edit operations to apply",
    )
    dry_run: bool = Field(False, alias="dryRun", description="Preview changes without applying them")
    create_backup: Optional[bool] = Field(
        None, alias="createBackup", description="Create .bak backup files before editing",
    )
    project_root: Optional[str] = Field(
        None, alias="projectRoot",
        description="Project root for path validation (security boundary)",
    )
    max_file_size: Optional[int] = Field(
        None, alias="maxFileSize", gt=0, description="Skip files larger than this (bytes)",
    )


class CodeSearchOptions(_Request):
    is_regex: bool = Field(False, alias="isRegex", description="Treat pattern as regex")
    case_sensitive: Optional[bool] = Field(None, alias="caseSensitive", description="Case-sensitive search")
    max_results: Optional[int] = Field(None, alias="maxResults", ge=0, description="Maximum results to return")
    include_context: bool = Field(True, alias="includeContext", description="Include surrounding lines")
    context_lines: Optional[int] = Field(None, alias="contextLines", ge=0, description="Number of context lines")
    max_file_size: Optional[int] = Field(
        None, alias="maxFileSize", gt=0, description="Skip files larger than this (bytes)",
    )


class CodeSearchInput(_Request):
    pattern: str = Field(min_length=1, description="Search pattern (string or regex)")
    target: Union[str, list[str]] = Field(description="File path, directory or glob (or a list of them)")
    options: CodeSearchOptions = Field(default_factory=CodeSearchOptions)
    base_dir: Optional[str] = Field(
        None, alias="baseDir", description="Directory relative targets resolve against",
    )


class DiffReviewInput(_Request):
    original: str = Field(description="Original code content")
    modified: str = Field(description="Modified code content")
    filename: str = Field("file", description="Filename for diff header")
    context: Optional[int] = Field(None, ge=0, description="Lines of context around changes")


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

@dataclass
class ToolContext:
    """Per-call collaborators handed to a tool handler."""
    config: Config
    progress: ProgressCallback | None = None
    cancel_event: threading.Event | None = None


def _multi_string_edit(request: MultiStringEditInput, ctx: ToolContext) -> dict:
    cfg = ctx.config
    create_backup = cfg.CREATE_BACKUP if request.create_backup is None else request.create_backup
    editor = BatchEditor(
        request.project_root or cfg.PROJECT_ROOT,
        dry_run=request.dry_run,
        create_backup=create_backup,
        max_file_size=request.max_file_size or cfg.MAX_FILE_SIZE,
        diff_context=cfg.DIFF_CONTEXT,
        progress=ctx.progress,
        cancel_event=ctx.cancel_event,
        metrics=cfg.METRICS_ENABLED,
    )
    result = editor.run([e.to_operation() for e in request.edits])
    return result.to_dict()


def _code_search(request: CodeSearchInput, ctx: ToolContext) -> dict:
    cfg = ctx.config
    opts = request.options
    searcher = PatternSearch(exclude_dirs=cfg.EXCLUDE_DIRS)
    result = searcher.search(
        request.pattern,
        request.target,
        is_regex=opts.is_regex,
        case_sensitive=cfg.CASE_SENSITIVE if opts.case_sensitive is None else opts.case_sensitive,
        max_results=cfg.MAX_RESULTS if opts.max_results is None else opts.max_results,
        include_context=opts.include_context,
        context_lines=cfg.CONTEXT_LINES if opts.context_lines is None else opts.context_lines,
        max_file_size=opts.max_file_size or cfg.MAX_FILE_SIZE,
        base_dir=request.base_dir,
        progress=ctx.progress,
        cancel_event=ctx.cancel_event,
    )
    return result.to_dict()


def _diff_review(request: DiffReviewInput, ctx: ToolContext) -> dict:
    context = ctx.config.DIFF_CONTEXT if request.context is None else request.context
    result = DiffEngine(context=context).diff(
        request.original, request.modified, filename=request.filename,
    )
    return result.to_dict()


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@dataclass
class Tool:
    """A callable tool: id, description, input model and handler."""
    id: str
    description: str
    input_model: type[BaseModel]
    handler: Callable[[BaseModel, ToolContext], dict]

    def input_schema(self) -> dict:
        """JSON schema of the tool payload (camelCase property names)."""
        return self.input_model.model_json_schema(by_alias=True)

    def parse(self, payload: dict) -> BaseModel:
        try:
            return self.input_model.model_validate(payload)
        except ValidationError as exc:
            raise ToolInputError(f"Invalid input for {self.id}: {exc}") from exc


class ToolRegistry:
    """Holds the registered tools and dispatches calls to them."""

    def __init__(self):
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        if tool.id in self._tools:
            logger.warning("[ToolRegistry] Replacing tool %s", tool.id)
        self._tools[tool.id] = tool

    def get(self, tool_id: str) -> Tool:
        try:
            return self._tools[tool_id]
        except KeyError:
            raise KeyError(f"Unknown tool: {tool_id}") from None

    def run(
        self,
        tool_id: str,
        payload: dict,
        *,
        progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
        config: Config | None = None,
    ) -> dict:
        """Validate *payload*, run the tool and return its JSON result.

        Raises
        ------
        KeyError
            Unknown *tool_id*.
        ToolInputError
            Payload does not match the input schema.
        """
        tool = self.get(tool_id)
        request = tool.parse(payload)
        ctx = ToolContext(
            config=config or Config.load(),
            progress=progress,
            cancel_event=cancel_event,
        )
        logger.info("[ToolRegistry] Running %s", tool_id)
        return tool.handler(request, ctx)

    @property
    def tools(self) -> list[Tool]:
        return list(self._tools.values())

    @property
    def size(self) -> int:
        return len(self._tools)


def build_default_registry() -> ToolRegistry:
    """Registry with the three built-in coding tools."""
    registry = ToolRegistry()
    registry.register(Tool(
        id="coding:multiStringEdit",
        description=(
            "Apply multiple string replacements across files atomically.\n"
            "Each edit specifies a file path, the exact text to find, and the "
            "replacement text.\nSupports dry-run mode to preview changes and "
            "automatic backup creation.\n"
            "Regex replacements reference groups as \\1 or \\g<name>, not $1."
        ),
        input_model=MultiStringEditInput,
        handler=_multi_string_edit,
    ))
    registry.register(Tool(
        id="coding:codeSearch",
        description=(
            "Search for patterns across source files.\n"
            "Supports string and regex patterns with context lines."
        ),
        input_model=CodeSearchInput,
        handler=_code_search,
    ))
    registry.register(Tool(
        id="coding:diffReview",
        description=(
            "Generate and analyze unified diffs between code versions.\n"
            "Returns structured diff data with hunks, individual changes, "
            "and statistics."
        ),
        input_model=DiffReviewInput,
        handler=_diff_review,
    ))
    return registry


default_registry = build_default_registry()


def run_tool(
    tool_id: str,
    payload: dict,
    *,
    progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
    config: Config | None = None,
) -> dict:
    """Run a built-in tool by id. See :meth:`ToolRegistry.run`."""
    return default_registry.run(
        tool_id, payload,
        progress=progress, cancel_event=cancel_event, config=config,
    )
