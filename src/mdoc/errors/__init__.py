"""Exception hierarchy and error codes.

Examples
--------
>>> from mdoc.errors import MdocError, ErrorCode
>>> try:
...     raise MdocError("Operation failed", code=ErrorCode.RUNTIME_ERROR)
... except MdocError as e:
...     assert e.to_dict()["code"] == "runtime-error"
"""

from __future__ import annotations

from mdoc.errors.codes import BASE_TYPE_URI, ErrorCode, get_type_uri
from mdoc.errors.exceptions import (
    AmbiguousOverrideSourceError,
    DocumentationIOError,
    MalformedMemberLineError,
    MdocError,
    MdocErrorConfig,
    NoDeclarationFoundError,
    SettingsError,
    SourceNotFoundError,
    UnresolvedCrossReferenceError,
)

__all__ = [
    "BASE_TYPE_URI",
    "AmbiguousOverrideSourceError",
    "DocumentationIOError",
    "ErrorCode",
    "MalformedMemberLineError",
    "MdocError",
    "MdocErrorConfig",
    "NoDeclarationFoundError",
    "SettingsError",
    "SourceNotFoundError",
    "UnresolvedCrossReferenceError",
    "get_type_uri",
]
