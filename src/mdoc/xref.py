"""Cross-reference resolution against a name to location map.

The map is built once by the caller and shared read-only by every page
renderer, including renderers running on worker threads.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING

from mdoc.errors import UnresolvedCrossReferenceError
from mdoc.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

__all__ = ["NameResolver", "ResolvedLink", "relative_href"]

logger = get_logger(__name__)

DEFAULT_FALLBACK_TEMPLATE = "matlab:doc('{name}')"


@dataclass(slots=True, frozen=True)
class ResolvedLink:
    """Target of one cross reference.

    ``resolved`` is False when ``href`` came from the fallback template.
    """

    name: str
    href: str
    resolved: bool


def relative_href(from_page: str, target: str) -> str:
    """Return ``target`` relative to the folder holding ``from_page``.

    Both paths are ``/``-separated and relative to the site root.

    Examples
    --------
    >>> relative_href("signal/filt.html", "util/clip.html")
    '../util/clip.html'
    >>> relative_href("index.html", "util/clip.html")
    'util/clip.html'
    """
    depth = from_page.count("/")
    return "../" * depth + target


@dataclass(slots=True, frozen=True)
class NameResolver:
    """Resolve documentation names to hrefs.

    Parameters
    ----------
    names : Mapping[str, str]
        Name to site-relative page path (``/``-separated). Defaults to empty.
    fallback_template : str
        Format string with a ``{name}`` field used for unknown names.
    strict : bool
        Raise :class:`~mdoc.errors.UnresolvedCrossReferenceError` instead of
        falling back. Defaults to False.
    page : str
        Site-relative path of the page links are rendered into. Defaults to
        "" (links are returned as stored).
    """

    names: Mapping[str, str] = field(default_factory=dict)
    fallback_template: str = DEFAULT_FALLBACK_TEMPLATE
    strict: bool = False
    page: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.names, MappingProxyType):
            object.__setattr__(self, "names", MappingProxyType(dict(self.names)))

    def for_page(self, page: str) -> NameResolver:
        """Return a resolver producing links relative to ``page``."""
        return replace(self, page=page)

    def lookup(self, name: str) -> str | None:
        """Return the href for ``name`` or None when it is not in the map."""
        target = self.names.get(name)
        if target is None:
            return None
        return relative_href(self.page, target) if self.page else target

    def resolve(self, name: str) -> ResolvedLink:
        """Resolve ``name``, degrading to the fallback template when unknown.

        Raises
        ------
        UnresolvedCrossReferenceError
            If the name is unknown and the resolver is strict.
        """
        href = self.lookup(name)
        if href is not None:
            return ResolvedLink(name=name, href=href, resolved=True)
        if self.strict:
            raise UnresolvedCrossReferenceError(name)
        logger.debug(
            "Cross reference not in name map, using fallback",
            extra={"operation": "xref", "name": name, "page": self.page},
        )
        return ResolvedLink(
            name=name, href=self.fallback_template.format(name=name), resolved=False
        )
