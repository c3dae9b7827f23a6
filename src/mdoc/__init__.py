"""Reference documentation for MATLAB source files.

``mdoc`` reads the help comment attached to a ``function`` or ``classdef``
declaration, recovers a structured description of the unit, and renders it
as an HTML reference page, plain-text help or a JSON document.
"""

from __future__ import annotations

from mdoc import errors, logging, models, settings
from mdoc.models import DeclarationUnit, dump_unit, serialize_unit
from mdoc.parser import parse_source
from mdoc.plaintext import format_help
from mdoc.render import PageRenderer, render_unit
from mdoc.site import build_site
from mdoc.xref import NameResolver

__version__ = "0.3.0"

__all__ = [
    "DeclarationUnit",
    "NameResolver",
    "PageRenderer",
    "__version__",
    "build_site",
    "dump_unit",
    "errors",
    "format_help",
    "logging",
    "models",
    "parse_source",
    "render_unit",
    "serialize_unit",
    "settings",
]
