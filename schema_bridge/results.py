"""
Result protocol types shared by the parser, the evaluator and the batch driver.

A batch either succeeds as a whole (``Ok``: one :class:`IntrospectionResult`
per query, index-aligned with the input) or fails as a whole (``Err``: a
non-empty list of :class:`ErrorRecord`).
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence


@dataclass(frozen=True)
class SourceLocation:
    """A 1-based line/column position in a source document."""
    line: int
    column: int

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "column": self.column}


@dataclass(frozen=True)
class ErrorRecord:
    """A single structured error surfaced across the bridge boundary."""
    message: str
    locations: tuple[SourceLocation, ...] = ()
    path: tuple[Any, ...] = ()
    extensions: dict[str, Any] = field(default_factory=dict)

    def with_extensions(self, **extensions: Any) -> "ErrorRecord":
        merged = dict(self.extensions)
        merged.update(extensions)
        return ErrorRecord(
            message=self.message,
            locations=self.locations,
            path=self.path,
            extensions=merged,
        )

    def without_locations(self) -> "ErrorRecord":
        return ErrorRecord(message=self.message, path=self.path, extensions=self.extensions)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation, omitting empty metadata."""
        data: dict[str, Any] = {"message": self.message}
        if self.locations:
            data["locations"] = [location.to_dict() for location in self.locations]
        if self.path:
            data["path"] = list(self.path)
        if self.extensions:
            data["extensions"] = dict(self.extensions)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ErrorRecord":
        if not isinstance(data, dict):
            raise ValueError("ErrorRecord.from_dict expects a dict")
        locations = tuple(
            SourceLocation(line=loc["line"], column=loc["column"])
            for loc in data.get("locations") or []
        )
        return cls(
            message=str(data.get("message", "")),
            locations=locations,
            path=tuple(data.get("path") or ()),
            extensions=dict(data.get("extensions") or {}),
        )


@dataclass(frozen=True)
class IntrospectionResult:
    """The evaluated response tree of one introspection query."""
    data: Optional[dict[str, Any]]

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.data}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IntrospectionResult":
        if not isinstance(data, dict):
            raise ValueError("IntrospectionResult.from_dict expects a dict")
        return cls(data=data.get("data"))


@dataclass(frozen=True)
class BatchOutcome:
    """
    Discriminated outcome of one batch invocation.

    Exactly one of ``ok`` and ``err`` is populated; use :meth:`success` and
    :meth:`failure` to construct instances.
    """
    ok: Optional[tuple[IntrospectionResult, ...]] = None
    err: Optional[tuple[ErrorRecord, ...]] = None

    def __post_init__(self):
        if (self.ok is None) == (self.err is None):
            raise ValueError("BatchOutcome requires exactly one of 'ok' or 'err'")
        if self.err is not None and not self.err:
            raise ValueError("BatchOutcome failure requires at least one error record")

    @classmethod
    def success(cls, results: Sequence[IntrospectionResult]) -> "BatchOutcome":
        return cls(ok=tuple(results))

    @classmethod
    def failure(cls, errors: Sequence[ErrorRecord]) -> "BatchOutcome":
        return cls(err=tuple(errors))

    @property
    def is_ok(self) -> bool:
        return self.ok is not None

    @property
    def is_err(self) -> bool:
        return self.err is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the ``{"Ok": [...]}`` / ``{"Err": [...]}`` wire shape."""
        if self.ok is not None:
            return {"Ok": [result.to_dict() for result in self.ok]}
        return {"Err": [error.to_dict() for error in self.err]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BatchOutcome":
        """Rehydrate a BatchOutcome from its wire shape."""
        if not isinstance(data, dict) or len(data) != 1:
            raise ValueError("BatchOutcome.from_dict expects a dict with a single 'Ok' or 'Err' key")
        if "Ok" in data:
            return cls.success([IntrospectionResult.from_dict(item) for item in data["Ok"]])
        if "Err" in data:
            return cls.failure([ErrorRecord.from_dict(item) for item in data["Err"]])
        raise ValueError(f"Unknown BatchOutcome branch: {next(iter(data))}")
