#!/usr/bin/env python3
"""
Context Fetcher - AI context standards downloader
Fetches selected standards documents from a remote repository and saves them
locally so they can be handed to an AI assistant as context.

Pipeline:
- Catalog of selectable standards (static, ordered)
- Remote fetcher with one bounded-time GET per source file
- Combiner that merges multi-file standards with labelled separators
- Output writer for a folder, an ad hoc file, or the terminal
- Sequential orchestrator with a per-entry summary and exit code
"""

import argparse
import asyncio
import contextlib
import difflib
import enum
import functools
import logging
import os
import re
import stat
import sys
import tempfile
import traceback
import urllib.parse
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

import requests
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.prompt import Prompt
from rich.rule import Rule
from rich.table import Table


# Async helper for running blocking I/O in thread pool
async def run_in_thread(func: Callable[..., Any], *args, **kwargs) -> Any:
    """Run a blocking function in a thread pool without blocking the loop.

    Uses asyncio.to_thread() for Python 3.9+,
    falls back to run_in_executor() for Python 3.8.
    """
    if sys.version_info >= (3, 9):
        return await asyncio.to_thread(func, *args, **kwargs)
    else:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None, functools.partial(func, *args, **kwargs)
        )


__version__ = "1.0.0"
__author__ = "Context Fetcher Project"
__license__ = "MIT"

DEFAULT_BASE_URL = "https://raw.githubusercontent.com/Mahusaa/Database-Readme/main"
DEFAULT_OUTPUT_DIR = ".context"
DEFAULT_TIMEOUT = 15.0
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "context-fetcher" / "config"

OUTPUT_MODES = ("save", "display", "both")
SEPARATOR_WIDTH = 80


class ContextFetcherError(Exception):
    """Base exception for context fetcher errors"""

    pass


class CatalogError(ContextFetcherError):
    """Malformed catalog definition"""

    pass


class SecurityError(ContextFetcherError):
    """Output path would escape its destination directory"""

    pass


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CatalogEntry:
    """One selectable standard"""

    key: str
    name: str
    description: str
    source_paths: Tuple[str, ...]
    output_name: str

    def __post_init__(self):
        if not self.key or re.search(r"[\s,]", self.key):
            raise CatalogError(f"Invalid catalog key: {self.key!r}")

        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, "source_paths", tuple(self.source_paths))
        if not self.source_paths:
            raise CatalogError(f"Catalog entry '{self.key}' has no source paths")

        separators = {"/", "\\", os.sep} | ({os.altsep} if os.altsep else set())
        if (
            self.output_name in ("", ".", "..")
            or any(sep in self.output_name for sep in separators)
            or "\x00" in self.output_name
        ):
            raise CatalogError(
                f"Catalog entry '{self.key}' has an invalid output name: "
                f"{self.output_name!r}"
            )


class Catalog:
    """Ordered, read-only collection of catalog entries"""

    def __init__(self, entries: Sequence[CatalogEntry]):
        self._entries: Dict[str, CatalogEntry] = {}
        for entry in entries:
            if entry.key in self._entries:
                raise CatalogError(f"Duplicate catalog key: {entry.key}")
            self._entries[entry.key] = entry

    def list_entries(self) -> List[CatalogEntry]:
        return list(self._entries.values())

    def keys(self) -> List[str]:
        return list(self._entries)

    def get(self, key: str) -> CatalogEntry:
        return self._entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


DEFAULT_CATALOG = Catalog(
    [
        CatalogEntry(
            key="coding",
            name="Coding Standards",
            description="Code conventions, file naming, TypeScript guidelines",
            source_paths=("coding-rule/CODING_STANDART.md",),
            output_name="coding-standards.md",
        ),
        CatalogEntry(
            key="design",
            name="Design Standards",
            description="UI/UX, branding, design system guidelines",
            source_paths=("design/DESIGN_STANDARDS.md",),
            output_name="design-standards.md",
        ),
        CatalogEntry(
            key="seo",
            name="SEO Standards",
            description="SEO best practices, meta tags, structured data",
            source_paths=("seo/SEO_STANDARDS.md",),
            output_name="seo-standards.md",
        ),
        CatalogEntry(
            key="accessibility",
            name="Accessibility Standards",
            description="WCAG compliance, a11y guidelines",
            source_paths=("accessibility/ACCESSIBILITY_STANDARDS.md",),
            output_name="accessibility-standards.md",
        ),
        CatalogEntry(
            key="content",
            name="Content Guidelines",
            description="Copywriting, tone of voice, content structure",
            source_paths=("content/CONTENT_GUIDELINES.md",),
            output_name="content-guidelines.md",
        ),
        CatalogEntry(
            key="performance",
            name="Performance Standards",
            description="Web vitals, optimization, loading strategies",
            source_paths=("performance/PERFORMANCE_STANDARDS.md",),
            output_name="performance-standards.md",
        ),
    ]
)


def suggest_key(key: str, catalog: Catalog) -> Optional[str]:
    """Closest catalog key for a mistyped one, if any"""
    matches = difflib.get_close_matches(key, catalog.keys(), n=1, cutoff=0.6)
    return matches[0] if matches else None


# ---------------------------------------------------------------------------
# Remote fetcher
# ---------------------------------------------------------------------------


class FailureReason(enum.Enum):
    NOT_FOUND = "not found"
    NETWORK_ERROR = "network error"
    SERVER_ERROR = "server error"


@dataclass(frozen=True)
class FetchResult:
    """Outcome of retrieving one remote file"""

    path: str
    content: Optional[str] = None
    reason: Optional[FailureReason] = None
    detail: str = ""

    @classmethod
    def success(cls, path: str, content: str) -> "FetchResult":
        return cls(path=path, content=content)

    @classmethod
    def failure(
        cls, path: str, reason: FailureReason, detail: str = ""
    ) -> "FetchResult":
        return cls(path=path, reason=reason, detail=detail or reason.value)

    @property
    def ok(self) -> bool:
        return self.reason is None


class RemoteFetcher:
    """Retrieves raw files relative to a single fixed base URL.

    Each call issues exactly one GET with a finite timeout. Nothing is retried
    or cached; every problem comes back as a failed FetchResult.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = str(base_url).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault(
            "User-Agent", f"context-fetcher/{__version__}"
        )
        self.logger = logging.getLogger("context_fetcher")

    def url_for(self, relative_path: str) -> str:
        return f"{self.base_url}/{urllib.parse.quote(relative_path.lstrip('/'))}"

    def fetch(self, relative_path: str) -> FetchResult:
        url = self.url_for(relative_path)
        self.logger.debug(f"GET {url}")

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout:
            return FetchResult.failure(
                relative_path,
                FailureReason.NETWORK_ERROR,
                f"timed out after {self.timeout:g}s",
            )
        except requests.exceptions.RequestException as e:
            return FetchResult.failure(
                relative_path, FailureReason.NETWORK_ERROR, f"connection failed: {e}"
            )

        status = response.status_code
        if status == 200:
            return FetchResult.success(
                relative_path, response.content.decode("utf-8", errors="replace")
            )

        detail = f"{status} {response.reason or ''}".strip()
        if status in (404, 410):
            return FetchResult.failure(relative_path, FailureReason.NOT_FOUND, detail)
        return FetchResult.failure(relative_path, FailureReason.SERVER_ERROR, detail)


# ---------------------------------------------------------------------------
# Combiner
# ---------------------------------------------------------------------------


def separator_block(path: str) -> str:
    rule = "=" * SEPARATOR_WIDTH
    return f"\n\n{rule}\nFILE: {path}\n{rule}\n\n"


def combine(parts: Sequence[Tuple[str, str]]) -> str:
    """Merge fetched parts in order, labelling each part after the first.

    A single part is returned unchanged. Otherwise a separator naming the
    source path of the following part sits between consecutive parts.
    """
    if not parts:
        raise ValueError("combine() needs at least one part")

    combined = parts[0][1]
    for path, text in parts[1:]:
        combined += separator_block(path) + text
    return combined


# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------


def parse_selection(
    answer: str, catalog: Catalog, allow_all: bool = True
) -> Tuple[List[str], List[str]]:
    """Parse a typed answer into catalog keys.

    Tokens are 1-based numbers, keys, or ``all``. Returns the keys in catalog
    order plus any tokens that could not be understood.
    """
    entries = catalog.list_entries()
    chosen = set()
    invalid = []

    for token in re.split(r"[,\s]+", answer.strip()):
        if not token:
            continue
        lowered = token.lower()
        if allow_all and lowered == "all":
            chosen.update(catalog.keys())
        elif token.isdigit() and 1 <= int(token) <= len(entries):
            chosen.add(entries[int(token) - 1].key)
        elif lowered in catalog:
            chosen.add(lowered)
        else:
            invalid.append(token)

    return [key for key in catalog.keys() if key in chosen], invalid


class Selector:
    """Chooses which catalog entries a run processes.

    Implementations return keys in catalog order; an empty list means the
    user made no selection.
    """

    def select(self, catalog: Catalog) -> List[str]:
        raise NotImplementedError


class StaticSelector(Selector):
    """Selection fixed up front, e.g. from ``--select``"""

    def __init__(self, keys: Sequence[str], multiple: bool = True):
        self.requested = list(keys)
        self.multiple = multiple

    def select(self, catalog: Catalog) -> List[str]:
        unknown = [key for key in self.requested if key not in catalog]
        if unknown:
            raise ContextFetcherError(f"Unknown standard(s): {', '.join(unknown)}")
        if not self.multiple and len(set(self.requested)) > 1:
            raise ContextFetcherError("Single-select mode accepts one standard")
        return [key for key in catalog.keys() if key in self.requested]


class PromptSelector(Selector):
    """Interactive numbered picker rendered with rich"""

    def __init__(
        self, console: Console, multiple: bool = True, stream: Optional[Any] = None
    ):
        self.console = console
        self.multiple = multiple
        self.stream = stream

    def render(self, catalog: Catalog) -> None:
        table = Table(show_header=True, header_style="bold", box=None)
        table.add_column("#", justify="right", style="cyan")
        table.add_column("Key", style="green")
        table.add_column("Standard")
        table.add_column("Description", style="dim")
        for index, entry in enumerate(catalog, 1):
            table.add_row(str(index), entry.key, entry.name, entry.description)
        self.console.print(table)

    def select(self, catalog: Catalog) -> List[str]:
        self.console.print("\n[bold]🤖 AI Context Fetcher[/bold]\n")
        if self.multiple:
            self.console.print("Select which standards you want to use as AI context:")
            hint = "numbers or keys separated by commas, 'all' for everything"
        else:
            self.console.print("Select the standard you want to use as AI context:")
            hint = "one number or key"
        self.render(catalog)

        while True:
            try:
                answer = Prompt.ask(
                    f"\nPick standards [dim]({hint}, blank to cancel)[/dim]",
                    console=self.console,
                    default="",
                    show_default=False,
                    stream=self.stream,
                )
            except EOFError:
                return []

            if not answer.strip():
                return []

            keys, invalid = parse_selection(answer, catalog, allow_all=self.multiple)
            if invalid:
                self.console.print(
                    f"[red]Unknown choice(s): {escape(', '.join(invalid))}[/red]"
                )
                continue
            if not self.multiple and len(keys) != 1:
                self.console.print("[red]Pick exactly one standard.[/red]")
                continue
            return keys


def prompt_output_mode(console: Console, stream: Optional[Any] = None) -> str:
    """Ask whether to save, display, or both"""
    try:
        return Prompt.ask(
            "Output mode",
            console=console,
            choices=list(OUTPUT_MODES),
            default="save",
            stream=stream,
        )
    except EOFError:
        return "save"


def prompt_output_file(
    console: Console, default: Path, stream: Optional[Any] = None
) -> Path:
    """Ask for an ad hoc target file name"""
    try:
        answer = Prompt.ask(
            "Save to file", console=console, default=str(default), stream=stream
        )
    except EOFError:
        answer = ""
    return Path(answer.strip() or str(default)).expanduser()


# ---------------------------------------------------------------------------
# Output writer
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Destination:
    """Where combined content goes"""

    mode: str = "save"
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    output_file: Optional[Path] = None

    def __post_init__(self):
        if self.mode not in OUTPUT_MODES:
            raise ValueError(
                f"Unknown output mode '{self.mode}'. Valid modes: {', '.join(OUTPUT_MODES)}"
            )
        object.__setattr__(self, "output_dir", Path(self.output_dir))
        if self.output_file is not None:
            object.__setattr__(self, "output_file", Path(self.output_file))

    @property
    def saves(self) -> bool:
        return self.mode in ("save", "both")

    @property
    def displays(self) -> bool:
        return self.mode in ("display", "both")


@dataclass(frozen=True)
class WriteOutcome:
    path: Optional[Path] = None
    displayed: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class OutputWriter:
    """Persists combined content to disk and/or the terminal"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self.logger = logging.getLogger("context_fetcher")

    def ensure_directory(self, path: Path) -> bool:
        """Create ``path`` if needed; returns True when it was created"""
        path = Path(path)
        if path.is_dir():
            return False
        path.mkdir(parents=True, exist_ok=True)
        return True

    def target_for(self, entry: CatalogEntry, destination: Destination) -> Path:
        if destination.output_file is not None:
            return destination.output_file.expanduser()

        base_dir = destination.output_dir
        target = base_dir / entry.output_name
        try:
            target.resolve().relative_to(base_dir.resolve())
        except ValueError:
            raise SecurityError(
                f"Output name '{entry.output_name}' would escape output directory "
                f"'{base_dir}'"
            )
        return target

    def write_file(self, path: Path, content: str) -> None:
        """Write UTF-8 text through a temp file and an atomic replace"""
        self.ensure_directory(path.parent)

        if path.exists():
            mode = stat.S_IMODE(path.stat().st_mode)
            self.logger.warning(f"Overwriting existing file: {path}")
        else:
            mode = 0o644

        fd, temp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            os.chmod(temp_name, mode)
            os.replace(temp_name, path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(temp_name)
            raise

    def display(self, entry: CatalogEntry, content: str) -> None:
        self.console.print(Rule(escape(entry.name)))
        self.console.print(content, markup=False, highlight=False, soft_wrap=True)
        self.console.print(Rule())

    def write(
        self, entry: CatalogEntry, content: str, destination: Destination
    ) -> WriteOutcome:
        displayed = False
        try:
            if destination.displays:
                self.display(entry, content)
                displayed = True
            if destination.saves:
                path = self.target_for(entry, destination)
                self.write_file(path, content)
                return WriteOutcome(path=path, displayed=displayed)
        except SecurityError as e:
            return WriteOutcome(displayed=displayed, error=str(e))
        except OSError as e:
            return WriteOutcome(displayed=displayed, error=describe_os_error(e))
        return WriteOutcome(displayed=displayed)


def describe_os_error(error: OSError) -> str:
    """Human-readable OSError without errno noise"""
    if error.strerror and error.filename:
        return f"{error.strerror}: {error.filename}"
    return error.strerror or str(error)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class RunState(enum.Enum):
    IDLE = "idle"
    SELECTING = "selecting"
    PROCESSING = "processing"
    SUMMARIZING = "summarizing"
    DONE = "done"


@dataclass
class EntryOutcome:
    """Result of processing one selected entry"""

    key: str
    succeeded: bool
    produced_path: Optional[Path] = None
    failed_sources: List[str] = field(default_factory=list)
    total_sources: int = 0
    displayed: bool = False
    error: Optional[str] = None

    @property
    def partial(self) -> bool:
        return self.succeeded and bool(self.failed_sources)


@dataclass
class RunSummary:
    """Per-run accumulator, frozen once the run ends"""

    selected_keys: List[str] = field(default_factory=list)
    outcomes: Dict[str, EntryOutcome] = field(default_factory=dict)
    cancelled: bool = False
    location: Optional[Path] = None
    closed: bool = False

    def record(self, outcome: EntryOutcome) -> None:
        if self.closed:
            raise ContextFetcherError("Run summary is closed")
        self.outcomes[outcome.key] = outcome

    def close(self) -> None:
        self.closed = True

    @property
    def succeeded_count(self) -> int:
        return sum(1 for o in self.outcomes.values() if o.succeeded)

    @property
    def failed_count(self) -> int:
        return sum(1 for o in self.outcomes.values() if not o.succeeded)

    @property
    def partial_count(self) -> int:
        return sum(1 for o in self.outcomes.values() if o.partial)

    @property
    def produced_paths(self) -> List[Path]:
        return [o.produced_path for o in self.outcomes.values() if o.produced_path]

    @property
    def exit_code(self) -> int:
        if self.cancelled or not self.selected_keys:
            return 0
        return 0 if self.succeeded_count > 0 else 1


DestinationChoice = Union[Destination, Callable[[List[CatalogEntry]], Destination]]


class ContextFetcher:
    """Runs select -> fetch -> combine -> write, one entry at a time"""

    def __init__(
        self,
        config: Optional[Dict] = None,
        catalog: Optional[Catalog] = None,
        fetcher: Optional[Any] = None,
        writer: Optional[OutputWriter] = None,
        console: Optional[Console] = None,
    ):
        self.config = config or {}
        self.console = console or Console()
        self.logger = self._setup_logging()

        self.catalog = catalog if catalog is not None else DEFAULT_CATALOG
        self.base_url = str(self.config.get("base_url") or DEFAULT_BASE_URL)
        self.timeout = parse_timeout(self.config.get("timeout", DEFAULT_TIMEOUT))
        self.show_progress = self.config.get("progress", True)

        self.fetcher = fetcher or RemoteFetcher(self.base_url, self.timeout)
        self.writer = writer or OutputWriter(self.console)

        # TTY detection for progress bars (disable when piped or in CI)
        self.is_tty = self.console.is_terminal
        self.state = RunState.IDLE

    def _setup_logging(self) -> logging.Logger:
        """Setup structured logging"""
        level = logging.DEBUG if self.config.get("verbose") else logging.WARNING

        logger = logging.getLogger("context_fetcher")
        logger.setLevel(level)

        # Avoid duplicate handlers
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                "%(asctime)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    def _select(self, selector: Selector) -> List[str]:
        self.state = RunState.SELECTING
        return list(selector.select(self.catalog) or [])

    def _resolve_destination(
        self, destination: DestinationChoice, keys: List[str]
    ) -> Destination:
        if isinstance(destination, Destination):
            return destination
        return destination([self.catalog.get(key) for key in keys if key in self.catalog])

    def _cancel(self, summary: RunSummary) -> RunSummary:
        self.console.print("\n[red]❌ No selection made. Exiting.[/red]\n")
        summary.cancelled = True
        summary.close()
        self.state = RunState.DONE
        return summary

    def _make_progress(self) -> Optional[Progress]:
        if not (self.show_progress and self.is_tty):
            return None
        return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )

    def _prepare_output_dir(self, destination: Destination) -> Optional[Path]:
        """Announce the output folder; a failure here surfaces per entry"""
        if not destination.saves:
            return None
        if destination.output_file is not None:
            return destination.output_file.expanduser().parent.resolve()

        output_dir = destination.output_dir.resolve()
        try:
            if self.writer.ensure_directory(destination.output_dir):
                self.console.print(f"\n[green]✓[/green] Created folder: {escape(str(output_dir))}\n")
            else:
                self.console.print(f"\n[green]✓[/green] Using folder: {escape(str(output_dir))}\n")
        except OSError as e:
            self.logger.warning(f"Cannot create output folder {output_dir}: {e}")
        return output_dir

    async def run(self, selector: Selector, destination: DestinationChoice) -> RunSummary:
        """Process the selection strictly in order and return the summary"""
        keys = self._select(selector)
        summary = RunSummary(selected_keys=keys)
        if not keys:
            return self._cancel(summary)

        self.state = RunState.PROCESSING
        target = self._resolve_destination(destination, keys)
        summary.location = self._prepare_output_dir(target)

        self.console.print(f"📥 Downloading {len(keys)} standard(s)...\n")

        progress_bar = self._make_progress()
        with progress_bar if progress_bar is not None else contextlib.nullcontext():
            task = None
            if progress_bar is not None:
                total = sum(
                    len(self.catalog.get(k).source_paths) for k in keys if k in self.catalog
                )
                task = progress_bar.add_task("Fetching", total=total)

            for key in keys:
                outcome = await self._process_entry(key, target, progress_bar, task)
                summary.record(outcome)

        self.state = RunState.SUMMARIZING
        summary.close()
        self._render_summary(summary, target)
        self.state = RunState.DONE
        return summary

    async def _process_entry(
        self,
        key: str,
        destination: Destination,
        progress_bar: Optional[Progress] = None,
        task: Optional[Any] = None,
    ) -> EntryOutcome:
        if key not in self.catalog:
            self.console.print(f"  [red]✗[/red] Unknown standard: {escape(key)}\n")
            return EntryOutcome(key=key, succeeded=False, error="unknown standard")

        entry = self.catalog.get(key)
        self.console.print(f"  📄 {escape(entry.name)}...")

        parts: List[Tuple[str, str]] = []
        failures: List[FetchResult] = []
        for path in entry.source_paths:
            result = await run_in_thread(self.fetcher.fetch, path)
            if result.ok:
                parts.append((path, result.content))
            else:
                self.logger.info(f"Failed to fetch {path}: {result.detail}")
                failures.append(result)
            if progress_bar is not None:
                progress_bar.update(task, advance=1)

        failed_sources = [f.path for f in failures]
        total = len(entry.source_paths)

        if not parts:
            reasons = "; ".join(f"{f.path}: {f.detail}" for f in failures)
            self.console.print(f"     [red]✗[/red] Failed to download ({escape(reasons)})\n")
            return EntryOutcome(
                key=key,
                succeeded=False,
                failed_sources=failed_sources,
                total_sources=total,
                error="no source could be retrieved",
            )

        content = combine(parts)
        written = await run_in_thread(self.writer.write, entry, content, destination)

        if not written.ok:
            self.console.print(f"     [red]✗[/red] Failed to write: {escape(written.error)}\n")
            return EntryOutcome(
                key=key,
                succeeded=False,
                failed_sources=failed_sources,
                total_sources=total,
                displayed=written.displayed,
                error=written.error,
            )

        note = ""
        if failures:
            note = f" [yellow](partial: {len(parts)}/{total} sources)[/yellow]"
        if written.path is not None:
            self.console.print(
                f"     [green]✓[/green] Saved to: {escape(written.path.name)}{note}\n"
            )
        else:
            self.console.print(f"     [green]✓[/green] Displayed{note}\n")

        return EntryOutcome(
            key=key,
            succeeded=True,
            produced_path=written.path,
            failed_sources=failed_sources,
            total_sources=total,
            displayed=written.displayed,
        )

    def _render_summary(self, summary: RunSummary, destination: Destination) -> None:
        self.console.print("=" * 60)
        if summary.succeeded_count:
            self.console.print("\n[bold green]✓ Download complete![/bold green]\n")
        else:
            self.console.print("\n[bold red]✗ Nothing was downloaded.[/bold red]\n")

        self.console.print(f"   Success: [green]{summary.succeeded_count}[/green] file(s)")
        self.console.print(f"   Failed:  [red]{summary.failed_count}[/red] file(s)")
        if summary.partial_count:
            self.console.print(
                f"   Partial: [yellow]{summary.partial_count}[/yellow] file(s)"
            )
        if summary.location is not None:
            self.console.print(f"   Location: {escape(str(summary.location))}\n")

        if summary.produced_paths:
            self.console.print("📁 Downloaded files:")
            for path in summary.produced_paths:
                self.console.print(f"   - {escape(path.name)}")

        if summary.succeeded_count and destination.saves:
            self.console.print(
                "\n💡 You can now use these files as context for your AI assistant!\n"
            )

    def dry_run(self, selector: Selector, destination: DestinationChoice) -> bool:
        """Show what would be fetched and written, without network or disk"""
        keys = self._select(selector)
        if not keys:
            self._cancel(RunSummary())
            return True

        target = self._resolve_destination(destination, keys)
        url_for = getattr(self.fetcher, "url_for", None)

        self.console.print("[bold]DRY RUN - Standards that would be fetched:[/bold]")
        for key in keys:
            entry = self.catalog.get(key)
            self.console.print(f"  [green]✓[/green] {escape(entry.name)}")
            for path in entry.source_paths:
                location = url_for(path) if url_for else path
                self.console.print(f"      GET {escape(location)}", soft_wrap=True)
            if target.saves:
                try:
                    out = self.writer.target_for(entry, target)
                except SecurityError as e:
                    self.console.print(f"      [red]✗[/red] {escape(str(e))}")
                else:
                    self.console.print(f"      -> {escape(str(out))}")
            if target.displays:
                self.console.print("      -> terminal")

        self.state = RunState.DONE
        return True


def parse_timeout(value: Any) -> float:
    """Parse a positive timeout in seconds"""
    if isinstance(value, bool):
        raise ValueError(f"Invalid timeout: {value!r}")
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid timeout: {value!r}")
    if timeout <= 0:
        raise ValueError(f"Timeout must be positive, got {value!r}")
    return timeout


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def create_config_file(config_path: Path) -> bool:
    """Create a default configuration file"""
    default_config = f"""# Context Fetcher Configuration
# Uncomment and modify values as needed

# Raw content root the standards are downloaded from
# base_url = "{DEFAULT_BASE_URL}"

# Folder the standards are saved to (relative to the working directory)
# output_dir = "{DEFAULT_OUTPUT_DIR}"

# Seconds to wait for each download before giving up
# timeout = {DEFAULT_TIMEOUT:g}

# Output mode: save, display, or both
# mode = "save"

# verbose = false
"""

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(default_config)
        return True
    except OSError as e:
        print(f"Error creating config file: {e}", file=sys.stderr)
        return False


def load_config_file(config_path: Path) -> Dict:
    """Load configuration from file with error handling"""
    if not config_path.exists():
        return {}

    config = {}
    line_num = 0
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line or line.startswith("#"):
                    continue

                if "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip().strip("\"'")

                    # Parse different value types
                    if value.lower() in ("true", "false"):
                        config[key] = value.lower() == "true"
                    elif value.isdigit():
                        config[key] = int(value)
                    elif re.fullmatch(r"\d+\.\d*|\.\d+", value):
                        config[key] = float(value)
                    elif value.startswith("[") and value.endswith("]"):
                        # Simple list parsing
                        items = [
                            item.strip().strip("\"'") for item in value[1:-1].split(",")
                        ]
                        config[key] = [item for item in items if item]
                    else:
                        config[key] = value

    except (OSError, UnicodeDecodeError) as e:
        print(
            f"Warning: Error loading config file on line {line_num}: {e}",
            file=sys.stderr,
        )

    return config


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="context-fetcher",
        description="Download coding, design, SEO, accessibility, content and "
        "performance standards to use as AI context",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Pick standards interactively and save them to ./.context
  %(prog)s

  # Non-interactive selection
  %(prog)s --select coding,seo

  # Show a standard in the terminal instead of saving it
  %(prog)s --select design --mode display

  # Save a single standard to a file of your choice
  %(prog)s --select coding --output-file docs/CODING.md

  # Preview the downloads without touching the network
  %(prog)s --select all --dry-run
        """,
    )

    parser.add_argument(
        "-s", "--select", action="append", default=None, metavar="KEY[,KEY]",
        help="Standards to fetch (keys or 'all'). Can be used multiple times. "
             "Skips the interactive picker."
    )
    parser.add_argument(
        "--single", action="store_true", help="Pick exactly one standard"
    )
    parser.add_argument(
        "-m", "--mode", choices=OUTPUT_MODES, default=None,
        help="Save to disk, display in the terminal, or both "
             "(asked interactively when omitted)"
    )
    parser.add_argument(
        "-d", "--output-dir", type=Path, default=None,
        help=f"Folder for saved standards (default: {DEFAULT_OUTPUT_DIR})"
    )
    parser.add_argument(
        "-o", "--output-file", type=Path, default=None,
        help="Save the selected standard to this file (implies --single)"
    )
    parser.add_argument("--base-url", default=None, help="Raw content root URL")
    parser.add_argument(
        "-t", "--timeout", type=float, default=None,
        help=f"Seconds to wait for each download (default: {DEFAULT_TIMEOUT:g})"
    )
    parser.add_argument(
        "--list", action="store_true", help="List available standards and exit"
    )
    parser.add_argument(
        "-n", "--dry-run", action="store_true", help="Show what would be done"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument(
        "--no-progress", action="store_true", help="Disable progress bars"
    )

    # Configuration
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Configuration file path",
    )
    parser.add_argument(
        "--create-config", action="store_true", help="Create default config"
    )

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def _selected_keys(
    parser: argparse.ArgumentParser, values: List[str], catalog: Catalog
) -> List[str]:
    """Validate --select values, suggesting close matches for typos"""
    keys: List[str] = []
    for value in values:
        for token in re.split(r"[,\s]+", value.strip()):
            if not token:
                continue
            if token.lower() == "all":
                keys.extend(catalog.keys())
                continue
            if token.lower() not in catalog:
                suggestion = suggest_key(token.lower(), catalog)
                if suggestion:
                    parser.error(
                        f"Unknown standard '{token}'. Did you mean '{suggestion}'?"
                    )
                parser.error(
                    f"Unknown standard '{token}'. Valid standards: {', '.join(catalog.keys())}"
                )
            keys.append(token.lower())
    return keys


def print_catalog(console: Console, catalog: Catalog) -> None:
    table = Table(title="Available standards")
    table.add_column("Key", style="green")
    table.add_column("Standard")
    table.add_column("Description", style="dim")
    table.add_column("Saved as", style="cyan")
    for entry in catalog:
        table.add_row(entry.key, entry.name, entry.description, entry.output_name)
    console.print(table)


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with comprehensive error handling"""
    parser = build_parser()
    args = parser.parse_args(argv)
    console = Console()
    catalog = DEFAULT_CATALOG

    try:
        # Handle config creation
        if args.create_config:
            if create_config_file(args.config):
                print(f"Created default configuration file: {args.config}")
                return 0
            print(f"Failed to create configuration file: {args.config}")
            return 1

        if args.list:
            print_catalog(console, catalog)
            return 0

        # Load configuration, then let explicit flags win
        config = load_config_file(args.config)
        overrides = {
            "base_url": args.base_url,
            "output_dir": args.output_dir,
            "timeout": args.timeout,
            "mode": args.mode,
        }
        config.update({k: v for k, v in overrides.items() if v is not None})
        if args.verbose:
            config["verbose"] = True
        config["progress"] = not args.no_progress

        try:
            config["timeout"] = parse_timeout(config.get("timeout", DEFAULT_TIMEOUT))
        except ValueError as e:
            parser.error(str(e))

        mode = config.get("mode")
        if mode is not None and mode not in OUTPUT_MODES:
            parser.error(
                f"Unknown output mode '{mode}'. Valid modes: {', '.join(OUTPUT_MODES)}"
            )
        if args.output_file is not None and mode == "display":
            parser.error("--output-file cannot be combined with display mode")

        single = args.single or args.output_file is not None
        output_dir = Path(str(config.get("output_dir") or DEFAULT_OUTPUT_DIR))
        interactive = args.select is None

        if interactive:
            selector: Selector = PromptSelector(console, multiple=not single)
        else:
            keys = _selected_keys(parser, args.select, catalog)
            if single and len(set(keys)) > 1:
                parser.error("--single and --output-file accept exactly one standard")
            selector = StaticSelector(keys, multiple=not single)

        def choose_destination(entries: List[CatalogEntry]) -> Destination:
            chosen_mode = mode
            if chosen_mode is None:
                chosen_mode = prompt_output_mode(console) if interactive else "save"
            output_file = args.output_file
            if (
                output_file is None
                and single
                and interactive
                and chosen_mode != "display"
                and entries
            ):
                output_file = prompt_output_file(
                    console, output_dir / entries[0].output_name
                )
            return Destination(chosen_mode, output_dir, output_file)

        fetcher = ContextFetcher(config, catalog=catalog, console=console)

        if args.dry_run:
            return 0 if fetcher.dry_run(selector, choose_destination) else 1

        summary = await fetcher.run(selector, choose_destination)
        return summary.exit_code

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except ContextFetcherError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            traceback.print_exc()
        return 1


def cli_main():
    """Synchronous entry point for console scripts"""
    return asyncio.run(main())


if __name__ == "__main__":
    sys.exit(cli_main())
