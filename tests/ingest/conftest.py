class FakeRowSource:
    def __init__(self, rows: list[dict[str, str]]) -> None:
        self._rows = rows

    @property
    def source_type(self) -> str:
        return "test"

    @property
    def source_detail(self) -> str:
        return "fake"

    def fetch(self) -> list[dict[str, str]]:
        return self._rows


class ErrorRowSource:
    @property
    def source_type(self) -> str:
        return "test"

    @property
    def source_detail(self) -> str:
        return "broken"

    def fetch(self) -> list[dict[str, str]]:
        raise OSError("disk unreadable")
