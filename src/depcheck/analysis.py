"""
Source analysis for depcheck.

This is the host side of depcheck: it reads Python files, turns each
import statement into an Edge, hands the edges to the rule engine and
collects one Diagnostic per violated rule. The rule engine itself never
sees source code.

Analysis Flow:
    1. Collect *.py files from the given files and directories
    2. Check files concurrently on a thread pool
    3. The InitializationGate builds the engine once, before any file is read;
       a policy that cannot be built aborts the run
    4. For each import: build an Edge, evaluate, record violations

Module paths are dotted names relative to the source root:
    <root>/app/domain/user.py      -> app.domain.user
    <root>/app/domain/__init__.py  -> app.domain

An import is exempt from every rule when a comment starting with
"# depcheck:allow" sits on the comment lines directly above it or at the
end of its first line.
"""

import ast
import io
import logging
import time
import tokenize
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from depcheck.policy.engine import RuleEngine
from depcheck.policy.gate import InitializationGate
from depcheck.schema import EXEMPTION_MARKER, Diagnostic, Edge

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 8
SKIP_DIRS = {"__pycache__", "node_modules"}


@dataclass(frozen=True)
class ImportSite:
    """
    One imported module path and where it appears.

    Attributes:
        imported: Absolute dotted module path
        line: 1-based line of the import statement
        column: 0-based column of the import statement
        exempt: Whether the import carries the exemption marker
    """

    imported: str
    line: int
    column: int
    exempt: bool = False


@dataclass
class SkippedFile:
    """A file that could not be analyzed (syntax or decoding error)."""

    path: str
    reason: str


@dataclass
class AnalysisResult:
    """
    Result of analyzing a set of files.

    Attributes:
        files_checked: Number of files analyzed
        edges_checked: Number of import edges evaluated
        diagnostics: Violations, sorted by file and position
        skipped: Files that could not be parsed
        duration_ms: Wall-clock time of the run
    """

    files_checked: int = 0
    edges_checked: int = 0
    diagnostics: list[Diagnostic] = field(default_factory=list)
    skipped: list[SkippedFile] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        """Whether no import violated the policy."""
        return not self.diagnostics


# =============================================================================
# Import extraction
# =============================================================================


def module_name(path: Path, root: Path) -> str:
    """
    Dotted module path of ``path`` relative to ``root``.

    Files outside ``root`` fall back to their bare stem.
    """
    try:
        relative = path.resolve().relative_to(root.resolve())
    except ValueError:
        return path.stem

    parts = list(relative.with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts.pop()
    return ".".join(parts)


def _resolve_relative(
    module: str,
    is_package: bool,
    level: int,
    target: str | None,
) -> str | None:
    """Resolve ``from <level dots><target> import ...`` to an absolute path."""
    package = module.split(".") if module else []
    if not is_package:
        package = package[:-1]

    drop = level - 1
    if drop > len(package):
        return None
    base = package[: len(package) - drop]

    if target:
        base = base + target.split(".")
    return ".".join(base) or None


def _comment_lines(source: str) -> tuple[dict[int, str], set[int]]:
    """
    Map line numbers to comment text.

    Returns:
        (comments by line, lines that contain only a comment)
    """
    comments: dict[int, str] = {}
    standalone: set[int] = set()
    readline = io.StringIO(source).readline
    for tok in tokenize.generate_tokens(readline):
        if tok.type != tokenize.COMMENT:
            continue
        line = tok.start[0]
        comments[line] = tok.string
        if tok.line.lstrip().startswith("#"):
            standalone.add(line)
    return comments, standalone


def _is_exempt(line: int, comments: dict[int, str], standalone: set[int]) -> bool:
    trailing = comments.get(line)
    if trailing is not None and line not in standalone:
        if trailing.startswith(EXEMPTION_MARKER):
            return True

    above = line - 1
    while above in standalone:
        if comments[above].startswith(EXEMPTION_MARKER):
            return True
        above -= 1
    return False


def extract_imports(
    source: str,
    module: str,
    is_package: bool = False,
) -> list[ImportSite]:
    """
    Find every import in a Python source string.

    ``import a.b`` yields ``a.b``; ``from a.b import c`` yields ``a.b``;
    ``from . import c`` yields ``<package>.c``. Relative imports are
    resolved against ``module``.

    Args:
        source: Python source code
        module: Dotted module path of the source
        is_package: Whether the source is a package ``__init__``

    Returns:
        Import sites in source order

    Raises:
        SyntaxError: If the source does not parse
    """
    tree = ast.parse(source)
    comments, standalone = _comment_lines(source)

    sites: list[ImportSite] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names = [alias.name for alias in node.names]
        elif isinstance(node, ast.ImportFrom):
            if node.level == 0:
                names = [node.module] if node.module else []
            elif node.module:
                names = [_resolve_relative(module, is_package, node.level, node.module)]
            else:
                names = [
                    _resolve_relative(module, is_package, node.level, alias.name)
                    for alias in node.names
                ]
        else:
            continue

        exempt = _is_exempt(node.lineno, comments, standalone)
        for name in names:
            if name is None:
                logger.warning(
                    "%s:%d: relative import goes above the source root",
                    module,
                    node.lineno,
                )
                continue
            sites.append(ImportSite(name, node.lineno, node.col_offset, exempt))

    sites.sort(key=lambda s: (s.line, s.column))
    return sites


# =============================================================================
# Analyzer
# =============================================================================


def collect_files(paths: list[Path]) -> list[Path]:
    """Expand files and directories into a sorted list of Python files."""
    found: set[Path] = set()
    for path in paths:
        if path.is_dir():
            for candidate in path.rglob("*.py"):
                relative = candidate.relative_to(path).parts[:-1]
                if any(p in SKIP_DIRS or p.startswith(".") for p in relative):
                    continue
                found.add(candidate)
        elif path.suffix == ".py":
            found.add(path)
    return sorted(found)


class Analyzer:
    """
    Checks Python source files against the dependency policy.

    Usage:
        analyzer = Analyzer(engine_gate(), root=Path("src"))
        result = analyzer.run([Path("src")])
        for diag in result.diagnostics:
            print(f"{diag.path}:{diag.line}: {diag.message}")

    Attributes:
        gate: Provides the shared RuleEngine, built on first use
        root: Source root that module paths are relative to
    """

    def __init__(
        self,
        gate: InitializationGate[RuleEngine],
        root: Path | str = ".",
    ) -> None:
        self.gate = gate
        self.root = Path(root)

    def check_source(self, source: str, path: Path) -> tuple[list[Diagnostic], int]:
        """
        Check one file's source.

        Returns:
            (diagnostics, number of edges evaluated)

        Raises:
            DepcheckError: If the rule engine could not be built
            SyntaxError: If the source does not parse
        """
        return self._check(self.gate.get(), source, path)

    def _check(
        self,
        engine: RuleEngine,
        source: str,
        path: Path,
    ) -> tuple[list[Diagnostic], int]:
        importer = module_name(path, self.root)
        sites = extract_imports(source, importer, path.name == "__init__.py")

        diagnostics = []
        for site in sites:
            edge = Edge(
                importer=importer,
                imported=site.imported,
                filename=path.name,
                exempt=site.exempt,
            )
            verdict = engine.evaluate(edge)
            for violation in verdict.violations:
                diagnostics.append(
                    Diagnostic(
                        path=str(path),
                        line=site.line,
                        column=site.column,
                        importer=importer,
                        imported=site.imported,
                        rule_index=violation.rule_index,
                        pattern=violation.pattern,
                        message=violation.message,
                    )
                )
        return diagnostics, len(sites)

    def check_file(self, path: Path) -> list[Diagnostic]:
        """Check one file. See check_source() for errors."""
        source = path.read_text(encoding="utf-8")
        diagnostics, _ = self.check_source(source, path)
        return diagnostics

    def run(
        self,
        paths: list[Path],
        workers: int = DEFAULT_WORKERS,
    ) -> AnalysisResult:
        """
        Check every Python file under ``paths``.

        Files are checked concurrently. Files that cannot be parsed are
        skipped and reported; a policy that cannot be built aborts the run.

        Raises:
            DepcheckError: If the rule engine could not be built
        """
        start = time.perf_counter()
        engine = self.gate.get()
        files = collect_files(paths)
        result = AnalysisResult()

        with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
            outcomes = list(pool.map(lambda p: self._check_one(engine, p), files))

        for path, outcome in zip(files, outcomes):
            if isinstance(outcome, SkippedFile):
                result.skipped.append(outcome)
                continue
            diagnostics, edges = outcome
            result.files_checked += 1
            result.edges_checked += edges
            result.diagnostics.extend(diagnostics)

        result.diagnostics.sort(key=lambda d: (d.path, d.line, d.column, d.rule_index))
        result.duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Checked %d file(s), %d import(s): %d violation(s)",
            result.files_checked,
            result.edges_checked,
            len(result.diagnostics),
        )
        return result

    def _check_one(
        self,
        engine: RuleEngine,
        path: Path,
    ) -> tuple[list[Diagnostic], int] | SkippedFile:
        try:
            source = path.read_text(encoding="utf-8")
            return self._check(engine, source, path)
        except (SyntaxError, UnicodeDecodeError, tokenize.TokenError, OSError) as e:
            logger.warning("Skipping %s: %s", path, e)
            return SkippedFile(path=str(path), reason=str(e))
