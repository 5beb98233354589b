from dataclasses import dataclass


@dataclass(frozen=True)
class FdgError:
    message: str


@dataclass(frozen=True)
class ValidationFailure(FdgError):
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class IngestError(FdgError):
    source_type: str
    source_detail: str
    target_table: str
