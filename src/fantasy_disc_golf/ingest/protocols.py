from typing import Protocol


class RowSource(Protocol):
    """Header-keyed rows exported from the league spreadsheet."""

    @property
    def source_type(self) -> str: ...

    @property
    def source_detail(self) -> str: ...

    def fetch(self) -> list[dict[str, str]]: ...
