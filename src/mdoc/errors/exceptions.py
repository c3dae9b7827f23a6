"""Typed exception hierarchy for the documentation engine.

All mdoc exceptions inherit from :class:`MdocError`, which carries a stable
:class:`~mdoc.errors.codes.ErrorCode`, a log level, an optional cause and a
context mapping. Only :class:`NoDeclarationFoundError` is fatal for a unit;
the other parse-time errors are raised by leaf helpers and recovered locally
by their callers with a visible degraded fallback.

Examples
--------
>>> from mdoc.errors import NoDeclarationFoundError, ErrorCode
>>> try:
...     raise NoDeclarationFoundError("No function or classdef declaration found")
... except NoDeclarationFoundError as e:
...     assert e.code == ErrorCode.NO_DECLARATION_FOUND
...     payload = e.to_dict()
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from mdoc.errors.codes import ErrorCode, get_type_uri

__all__ = [
    "AmbiguousOverrideSourceError",
    "DocumentationIOError",
    "MalformedMemberLineError",
    "MdocError",
    "MdocErrorConfig",
    "NoDeclarationFoundError",
    "SettingsError",
    "SourceNotFoundError",
    "UnresolvedCrossReferenceError",
]


@dataclass(slots=True)
class MdocErrorConfig:
    """Configuration options used when instantiating :class:`MdocError`."""

    code: ErrorCode = ErrorCode.RUNTIME_ERROR
    log_level: int = logging.ERROR
    cause: Exception | None = None
    context: Mapping[str, object] | None = None


class MdocError(Exception):
    """Base exception for all mdoc errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode, optional
        Stable error code. Defaults to ``ErrorCode.RUNTIME_ERROR``.
    cause : Exception | None, optional
        Underlying exception. Stored as ``__cause__``. Defaults to None.
    context : Mapping[str, object] | None, optional
        Structured details (file, unit, member line, ...). Defaults to None.
    log_level : int, optional
        Level at which boundary code should log the error. Defaults to ERROR.

    Attributes
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode
        Error code enum value.
    log_level : int
        Logging level for error logging.
    context : dict[str, object]
        Additional context dictionary for error details.

    Examples
    --------
    >>> error = MdocError("Operation failed")
    >>> str(error)
    'MdocError[runtime-error]: Operation failed'
    """

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode = ErrorCode.RUNTIME_ERROR,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
        log_level: int = logging.ERROR,
    ) -> None:
        super().__init__(message)
        if cause is not None and not isinstance(cause, Exception):
            msg = "cause must be an Exception when provided"
            raise TypeError(msg)
        config = MdocErrorConfig(code=code, log_level=log_level, cause=cause, context=context)
        self.message = message
        self.code = config.code
        self.log_level = config.log_level
        self.context: dict[str, object] = dict(config.context) if config.context else {}
        if config.cause is not None:
            self.__cause__ = config.cause

    def to_dict(self) -> dict[str, object]:
        """Return a machine-readable description of the error.

        Returns
        -------
        dict[str, object]
            Mapping with ``type``, ``title``, ``detail``, ``code`` and, when
            present, ``context`` and ``cause``.
        """
        payload: dict[str, object] = {
            "type": get_type_uri(self.code),
            "title": self.__class__.__name__,
            "detail": self.message,
            "code": self.code.value,
        }
        if self.context:
            payload["context"] = dict(self.context)
        if self.__cause__ is not None:
            payload["cause"] = type(self.__cause__).__name__
        return payload

    def __str__(self) -> str:
        """Return ``ClassName[code]: message`` plus the cause type when set."""
        base = f"{self.__class__.__name__}[{self.code.value}]: {self.message}"
        if self.__cause__:
            base += f" (caused by: {type(self.__cause__).__name__})"
        return base


class NoDeclarationFoundError(MdocError):
    """Source text contains no ``function`` or ``classdef`` declaration.

    Fatal for the unit: nothing can be produced without a declared name.
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message, code=ErrorCode.NO_DECLARATION_FOUND, cause=cause, context=context
        )


class MalformedMemberLineError(MdocError):
    """A parameter or field declaration line could not be split.

    Raised by :func:`mdoc.members.parse_member_line`. Block parsers catch it,
    log the line at WARNING and skip the member.

    Parameters
    ----------
    message : str
        Human-readable error message.
    line : str
        Offending source line.
    cause : Exception | None, optional
        Underlying exception. Defaults to None.
    """

    def __init__(self, message: str, line: str, cause: Exception | None = None) -> None:
        super().__init__(
            message,
            code=ErrorCode.MALFORMED_MEMBER_LINE,
            cause=cause,
            context={"line": line},
            log_level=logging.WARNING,
        )
        self.line = line


class AmbiguousOverrideSourceError(MdocError):
    """Members of one category drew descriptions from different sources.

    The override resolver is all-or-nothing per category, so this signals an
    internal inconsistency rather than bad user input.
    """

    def __init__(self, message: str, context: Mapping[str, object] | None = None) -> None:
        super().__init__(message, code=ErrorCode.AMBIGUOUS_OVERRIDE_SOURCE, context=context)


class UnresolvedCrossReferenceError(MdocError):
    """A cross-reference name has no entry in the name map.

    Only raised when strict cross references are enabled; otherwise the
    renderer degrades to the fallback link.

    Parameters
    ----------
    name : str
        The name that could not be resolved.
    """

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Cannot resolve cross reference '{name}'",
            code=ErrorCode.UNRESOLVED_CROSS_REFERENCE,
            context={"name": name},
            log_level=logging.WARNING,
        )
        self.name = name


class SourceNotFoundError(MdocError):
    """A command-line target resolved to neither a file nor ``<name>.m``."""

    def __init__(self, target: str) -> None:
        super().__init__(
            f"Cannot find file for '{target}'",
            code=ErrorCode.SOURCE_NOT_FOUND,
            context={"target": target},
        )
        self.target = target


class SettingsError(MdocError):
    """Configuration failed validation.

    Parameters
    ----------
    message : str
        Human-readable error message.
    cause : Exception | None, optional
        Underlying validation exception. Defaults to None.
    context : Mapping[str, object] | None, optional
        Additional context dictionary. Defaults to None.
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message, code=ErrorCode.CONFIGURATION_ERROR, cause=cause, context=context
        )


class DocumentationIOError(MdocError):
    """Reading a source file or writing a generated page failed.

    Parameters
    ----------
    message : str
        Human-readable error message.
    cause : Exception | None, optional
        Underlying ``OSError``. Defaults to None.
    context : Mapping[str, object] | None, optional
        Additional context, usually the path. Defaults to None.

    Examples
    --------
    >>> err = DocumentationIOError("Cannot read rescale.m", cause=OSError("denied"))
    >>> err.code.value
    'file-operation-error'
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message, code=ErrorCode.FILE_OPERATION_ERROR, cause=cause, context=context
        )
