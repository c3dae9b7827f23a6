"""Build a documentation site from a folder of ``.m`` files.

Every file is parsed once; units are immutable afterwards, so rendering runs
on a thread pool with only the read-only name map shared between workers.
Pages are written in discovery order.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from markupsafe import Markup

from mdoc.errors import DocumentationIOError, NoDeclarationFoundError
from mdoc.logging import get_logger, with_fields
from mdoc.parser import parse_source
from mdoc.render import PageRenderer, fragments, template_environment
from mdoc.settings import MdocSettings, load_settings
from mdoc.splitter import is_comment, strip_comment_marker
from mdoc.xref import NameResolver

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from mdoc.models import DeclarationUnit

__all__ = [
    "BuildReport",
    "FolderInfo",
    "SiteEntry",
    "build_name_map",
    "build_site",
    "discover_sources",
    "index_breadcrumb",
    "load_unit",
    "page_breadcrumb",
    "parse_contents_file",
    "read_source",
]

logger = get_logger(__name__)

CONTENTS_FILE = "contents.m"


@dataclass(slots=True, frozen=True)
class FolderInfo:
    """Title and description read from a folder's ``Contents.m``."""

    title: str = ""
    description: str = ""


@dataclass(slots=True, frozen=True)
class SiteEntry:
    """One parsed unit and the site-relative path of its page."""

    unit: DeclarationUnit
    page: str
    source: Path

    @property
    def folder(self) -> str:
        parent = PurePosixPath(self.page).parent.as_posix()
        return "" if parent == "." else parent


@dataclass(slots=True, frozen=True)
class BuildReport:
    """Outcome of :func:`build_site`."""

    output: Path
    pages: tuple[str, ...] = ()
    indexes: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()


def read_source(path: Path) -> str:
    """Read a source file as UTF-8.

    Raises
    ------
    DocumentationIOError
        If the file cannot be read.
    """
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        msg = f"Cannot read {path}"
        raise DocumentationIOError(msg, cause=exc, context={"path": str(path)}) from exc


def _write(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot write {path}"
        raise DocumentationIOError(msg, cause=exc, context={"path": str(path)}) from exc


def load_unit(path: Path) -> DeclarationUnit:
    """Read and parse one ``.m`` file, labelled with its stem."""
    return parse_source(read_source(path), path.stem)


def discover_sources(
    source: Path, output: Path, exclude_folders: Iterable[str]
) -> tuple[list[Path], dict[str, Path]]:
    """Find documentable files below ``source``.

    Parameters
    ----------
    source : Path
        Root folder.
    output : Path
        Output folder; anything inside it is ignored.
    exclude_folders : Iterable[str]
        Folder names skipped at any depth.

    Returns
    -------
    tuple[list[Path], dict[str, Path]]
        Sorted ``.m`` files, and ``Contents.m`` files keyed by the
        ``/``-separated folder path relative to ``source`` ("" for the root).
    """
    excluded = set(exclude_folders)
    output = output.resolve()
    files: list[Path] = []
    contents: dict[str, Path] = {}
    for path in sorted(source.rglob("*.m")):
        resolved = path.resolve()
        if resolved == output or output in resolved.parents:
            continue
        relative = path.relative_to(source)
        if any(part in excluded for part in relative.parts[:-1]):
            continue
        if path.name.lower() == CONTENTS_FILE:
            folder = relative.parent.as_posix()
            contents["" if folder == "." else folder] = path
            continue
        files.append(path)
    return files, contents


def parse_contents_file(text: str) -> FolderInfo:
    """Read the leading comment run of a ``Contents.m`` file.

    The first comment line is the title, the remaining lines the
    description. A blank line inside the run is kept when another comment
    follows it.
    """
    lines = text.splitlines()
    collected: list[str] = []
    for index, line in enumerate(lines):
        stripped = line.strip()
        if is_comment(stripped):
            collected.append(strip_comment_marker(stripped))
            continue
        following = lines[index + 1].strip() if index + 1 < len(lines) else ""
        if not stripped and collected and is_comment(following):
            collected.append("")
            continue
        break
    if not collected:
        return FolderInfo()
    return FolderInfo(
        title=collected[0].strip(),
        description="\n".join(collected[1:]).strip(),
    )


def _page_path(relative: PurePosixPath) -> str:
    return relative.with_suffix(".html").as_posix()


def _method_page(entry: SiteEntry, method_name: str) -> str:
    page = PurePosixPath(entry.page)
    return (page.parent / f"{entry.unit.name}.{method_name}.html").as_posix().removeprefix("./")


def build_name_map(entries: Sequence[SiteEntry]) -> dict[str, str]:
    """Map unit names and ``Type.method`` names to page paths.

    The first unit claiming a name keeps it; later duplicates are logged.
    """
    names: dict[str, str] = {}
    for entry in entries:
        if entry.unit.name in names:
            logger.warning(
                "Duplicate unit name, keeping first page",
                extra={"operation": "build", "unit": entry.unit.name, "page": entry.page},
            )
            continue
        names[entry.unit.name] = entry.page
        for method in entry.unit.methods:
            names[f"{entry.unit.name}.{method.name}"] = _method_page(entry, method.name)
    return names


def _trail(folders: Sequence[str], root_name: str, current: str, depth: int) -> Markup:
    segments: list[tuple[str | None, str]] = [("../" * depth + "index.html", root_name)]
    for position, folder in enumerate(folders):
        segments.append(("../" * (depth - position - 1) + "index.html", folder))
    segments.append((None, current))
    return fragments().breadcrumb(segments)


def page_breadcrumb(page: str, root_name: str) -> Markup:
    """Breadcrumb for a unit page: root, each folder, then the page name."""
    path = PurePosixPath(page)
    folders = list(path.parts[:-1])
    return _trail(folders, root_name, path.stem, len(folders))


def index_breadcrumb(folder: str, root_name: str) -> Markup:
    """Breadcrumb for a non-root folder index page."""
    parts = folder.split("/")
    return _trail(parts[:-1], root_name, parts[-1], len(parts))


def _load_entries(files: Sequence[Path], source: Path) -> tuple[list[SiteEntry], list[str]]:
    entries: list[SiteEntry] = []
    skipped: list[str] = []
    for path in files:
        relative = PurePosixPath(path.relative_to(source).as_posix())
        try:
            unit = load_unit(path)
        except NoDeclarationFoundError:
            logger.warning(
                "Skipping file without declaration",
                extra={"operation": "build", "path": relative.as_posix()},
            )
            skipped.append(relative.as_posix())
            continue
        entries.append(SiteEntry(unit=unit, page=_page_path(relative), source=path))
    return entries, skipped


def _jobs(
    entries: Sequence[SiteEntry], names: Mapping[str, str]
) -> list[tuple[DeclarationUnit, str]]:
    jobs: list[tuple[DeclarationUnit, str]] = []
    for entry in entries:
        if names.get(entry.unit.name) != entry.page:
            continue
        jobs.append((entry.unit, entry.page))
        for method in entry.unit.methods:
            jobs.append((entry.unit.method_unit(method), _method_page(entry, method.name)))
    return jobs


def _folders(pages: Iterable[str]) -> list[str]:
    folders = {""}
    for page in pages:
        parent = PurePosixPath(page).parent
        while parent.as_posix() != ".":
            folders.add(parent.as_posix())
            parent = parent.parent
    return sorted(folders)


def _children(folder: str, folders: Iterable[str]) -> list[str]:
    prefix = f"{folder}/" if folder else ""
    return sorted(
        candidate[len(prefix) :]
        for candidate in folders
        if candidate != folder
        and candidate.startswith(prefix)
        and "/" not in candidate[len(prefix) :]
    )


def _index_entries(
    entries: Sequence[SiteEntry], names: Mapping[str, str], folder: str
) -> list[dict[str, str]]:
    rows = [
        {
            "name": entry.unit.name,
            "synopsis": entry.unit.synopsis,
            "href": PurePosixPath(entry.page).name,
        }
        for entry in entries
        if entry.folder == folder and names.get(entry.unit.name) == entry.page
    ]
    return sorted(rows, key=lambda row: row["name"].lower())


def _render_index(
    folder: str,
    entries: Sequence[SiteEntry],
    names: Mapping[str, str],
    folders: Sequence[str],
    contents: Mapping[str, Path],
    root_name: str,
) -> str:
    info = FolderInfo()
    if folder in contents:
        info = parse_contents_file(read_source(contents[folder]))
    title = info.title or (folder.rsplit("/", 1)[-1] if folder else root_name)
    return template_environment().get_template("index.html.j2").render(
        title=title,
        description=[line.strip() for line in info.description.splitlines() if line.strip()],
        breadcrumb=index_breadcrumb(folder, root_name) if folder else None,
        folders=_children(folder, folders),
        entries=_index_entries(entries, names, folder),
    )


def build_site(
    source: Path,
    output: Path | None = None,
    settings: MdocSettings | None = None,
) -> BuildReport:
    """Generate one page per unit and method plus one index per folder.

    Parameters
    ----------
    source : Path
        Folder to document.
    output : Path | None, optional
        Destination folder. Defaults to ``source / settings.site.output_folder``.
    settings : MdocSettings | None, optional
        Configuration. Defaults to :func:`mdoc.settings.load_settings`.

    Returns
    -------
    BuildReport
        Written page paths, index paths and skipped sources, all relative to
        the output folder or source folder.

    Raises
    ------
    DocumentationIOError
        If a source cannot be read or a page cannot be written.
    """
    settings = settings if settings is not None else load_settings()
    source = source.resolve()
    output = (output if output is not None else source / settings.site.output_folder).resolve()
    log = with_fields(logger, operation="build", source=str(source))

    files, contents = discover_sources(source, output, settings.site.exclude_folders)
    entries, skipped = _load_entries(files, source)
    names = build_name_map(entries)
    resolver = NameResolver(
        names,
        fallback_template=settings.render.fallback_link_template,
        strict=settings.render.strict_cross_references,
    )
    renderer = PageRenderer(settings.render, resolver)
    root_name = source.name
    jobs = _jobs(entries, names)

    def render(job: tuple[DeclarationUnit, str]) -> str:
        unit, page = job
        return renderer.render(unit, page=page, breadcrumb=page_breadcrumb(page, root_name))

    with ThreadPoolExecutor(max_workers=settings.site.workers) as pool:
        documents = list(pool.map(render, jobs))
    for (_, page), document in zip(jobs, documents, strict=True):
        _write(output / page, document)

    folders = _folders(entry.page for entry in entries)
    indexes: list[str] = []
    for folder in folders:
        page = f"{folder}/index.html" if folder else "index.html"
        _write(output / page, _render_index(folder, entries, names, folders, contents, root_name))
        indexes.append(page)

    log.info(
        "Built documentation site",
        extra={
            "output": str(output),
            "pages": len(jobs),
            "indexes": len(indexes),
            "skipped": len(skipped),
        },
    )
    return BuildReport(
        output=output,
        pages=tuple(page for _, page in jobs),
        indexes=tuple(indexes),
        skipped=tuple(skipped),
    )
