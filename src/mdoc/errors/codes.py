"""Error code registry for documentation-engine failures.

Codes are stable kebab-case strings. They appear in structured log records
and in the machine-readable payload returned by
:meth:`mdoc.errors.MdocError.to_dict`.

Examples
--------
>>> from mdoc.errors.codes import ErrorCode, get_type_uri
>>> code = ErrorCode.NO_DECLARATION_FOUND
>>> get_type_uri(code)
'https://mdoc.dev/problems/no-declaration-found'
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

__all__ = [
    "BASE_TYPE_URI",
    "ErrorCode",
    "get_type_uri",
]


BASE_TYPE_URI: Final[str] = "https://mdoc.dev/problems"


class ErrorCode(StrEnum):
    """Stable error codes for mdoc exceptions.

    Codes are grouped by the layer that raises them:

    - parsing: ``NO_DECLARATION_FOUND``, ``MALFORMED_MEMBER_LINE``,
      ``AMBIGUOUS_OVERRIDE_SOURCE``
    - rendering: ``UNRESOLVED_CROSS_REFERENCE``
    - boundary: ``SOURCE_NOT_FOUND``, ``CONFIGURATION_ERROR``,
      ``FILE_OPERATION_ERROR``, ``RUNTIME_ERROR``

    Examples
    --------
    >>> ErrorCode.SOURCE_NOT_FOUND == "source-not-found"
    True
    """

    # Parsing
    NO_DECLARATION_FOUND = "no-declaration-found"
    MALFORMED_MEMBER_LINE = "malformed-member-line"
    AMBIGUOUS_OVERRIDE_SOURCE = "ambiguous-override-source"

    # Rendering
    UNRESOLVED_CROSS_REFERENCE = "unresolved-cross-reference"

    # Boundary
    SOURCE_NOT_FOUND = "source-not-found"
    CONFIGURATION_ERROR = "configuration-error"
    FILE_OPERATION_ERROR = "file-operation-error"
    RUNTIME_ERROR = "runtime-error"

    def __str__(self) -> str:
        """Return the code value as a string.

        Returns
        -------
        str
            The error code value (e.g., "source-not-found").
        """
        return self.value


def get_type_uri(code: ErrorCode) -> str:
    """Return the type URI for ``code``.

    Parameters
    ----------
    code : ErrorCode
        Error code enum value.

    Returns
    -------
    str
        ``BASE_TYPE_URI`` joined with the code value.
    """
    return f"{BASE_TYPE_URI}/{code.value}"
