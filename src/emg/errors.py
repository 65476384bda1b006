"""Error definitions for emg.

Every runtime or input-driven failure is an :class:`EmgError` whose ``code``
doubles as the process exit status. Misuse of the in-process building blocks
(reusing a packed geometry, feeding the packer elements of the wrong size)
raises :class:`PreconditionError` instead and is never mapped to an exit code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Optional


class ErrorCode(IntEnum):
    NONE = 0
    CONTENTION = 1
    GENERATION = 2
    NOT_IMPLEMENTED = 3
    MODULE_COMPILE = 4
    MODULE_INSTANCE = 5
    EXECUTION = 6
    CONTRACT = 7
    GENERATOR_NOT_FOUND = 8
    PARAMETER_COUNT = 9
    PARAMETER_TYPE = 10
    PARAMETER_OUT_OF_RANGE = 11
    MALFORMED_CONTAINER = 12
    MALFORMED_PAYLOAD = 13


@dataclass
class EmgError(Exception):
    code: ErrorCode
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code.name}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.name,
            "exit_code": int(self.code),
            "message": self.message,
            "context": self.context or {},
        }


class PreconditionError(RuntimeError):
    """Programmer error: an API was used outside its documented contract."""


@dataclass
class ContentionError(EmgError):
    code: ErrorCode = field(default=ErrorCode.CONTENTION, init=False)


@dataclass
class ContractError(EmgError):
    code: ErrorCode = field(default=ErrorCode.CONTRACT, init=False)


@dataclass
class GeneratorNotFound(EmgError):
    code: ErrorCode = field(default=ErrorCode.GENERATOR_NOT_FOUND, init=False)


@dataclass
class ParameterCountError(EmgError):
    code: ErrorCode = field(default=ErrorCode.PARAMETER_COUNT, init=False)


@dataclass
class ParameterTypeError(EmgError):
    code: ErrorCode = field(default=ErrorCode.PARAMETER_TYPE, init=False)


@dataclass
class ParameterOutOfRangeError(EmgError):
    code: ErrorCode = field(default=ErrorCode.PARAMETER_OUT_OF_RANGE, init=False)


@dataclass
class ExecutionFault(EmgError):
    code: ErrorCode = field(default=ErrorCode.EXECUTION, init=False)


@dataclass
class MalformedPayloadError(EmgError):
    code: ErrorCode = field(default=ErrorCode.MALFORMED_PAYLOAD, init=False)


@dataclass
class NotImplementedFeature(EmgError):
    code: ErrorCode = field(default=ErrorCode.NOT_IMPLEMENTED, init=False)


class ModuleLoadError(EmgError):
    """Plugin could not be compiled/imported (4) or instantiated (5)."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        *,
        instantiate: bool = False,
    ) -> None:
        code = (
            ErrorCode.MODULE_INSTANCE if instantiate else ErrorCode.MODULE_COMPILE
        )
        EmgError.__init__(self, code, message, context)


class GeneratorFailure(EmgError):
    """Generator ran to completion but reported a nonzero status."""

    def __init__(self, status: int, generator: str = "") -> None:
        EmgError.__init__(
            self,
            ErrorCode.GENERATION,
            f"generator returned error code: {status}",
            {"status": status, "generator": generator},
        )
        self.status = status


class MalformedContainerError(EmgError):
    """Container bytes violate one of the structural rules.

    ``rule`` names the violated check (one of the ``E_*`` constants below) so
    callers and tests can tell the diagnostics apart without parsing text.
    """

    def __init__(self, rule: str, message: str, **counts: int) -> None:
        EmgError.__init__(
            self,
            ErrorCode.MALFORMED_CONTAINER,
            message,
            {"rule": rule, **counts},
        )
        self.rule = rule


E_TOO_SHORT = "E_TOO_SHORT"
E_MAGIC = "E_MAGIC"
E_VERSION = "E_VERSION"
E_LENGTH_MISMATCH = "E_LENGTH_MISMATCH"
E_LENGTH_ALIGNMENT = "E_LENGTH_ALIGNMENT"
E_FIRST_CHUNK_NOT_JSON = "E_FIRST_CHUNK_NOT_JSON"
E_JSON_OVERFLOW = "E_JSON_OVERFLOW"
E_JSON_ALIGNMENT = "E_JSON_ALIGNMENT"
E_CHUNK_HEADER_TRUNCATED = "E_CHUNK_HEADER_TRUNCATED"
E_SECOND_CHUNK_NOT_BIN = "E_SECOND_CHUNK_NOT_BIN"
E_BIN_OVERFLOW = "E_BIN_OVERFLOW"
E_BIN_ALIGNMENT = "E_BIN_ALIGNMENT"
E_TRAILING_CHUNK = "E_TRAILING_CHUNK"


__all__ = [
    "ErrorCode",
    "EmgError",
    "PreconditionError",
    "ContentionError",
    "ContractError",
    "GeneratorNotFound",
    "ParameterCountError",
    "ParameterTypeError",
    "ParameterOutOfRangeError",
    "ExecutionFault",
    "GeneratorFailure",
    "MalformedContainerError",
    "MalformedPayloadError",
    "ModuleLoadError",
    "NotImplementedFeature",
    "E_TOO_SHORT",
    "E_MAGIC",
    "E_VERSION",
    "E_LENGTH_MISMATCH",
    "E_LENGTH_ALIGNMENT",
    "E_FIRST_CHUNK_NOT_JSON",
    "E_JSON_OVERFLOW",
    "E_JSON_ALIGNMENT",
    "E_CHUNK_HEADER_TRUNCATED",
    "E_SECOND_CHUNK_NOT_BIN",
    "E_BIN_OVERFLOW",
    "E_BIN_ALIGNMENT",
    "E_TRAILING_CHUNK",
]
