import csv
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class CsvSource:
    """Rows of a CSV export keyed by trimmed header.

    Fully blank lines and columns without a header are dropped; short rows are
    padded with empty strings.
    """

    def __init__(self, path: str | Path, *, delimiter: str = ",") -> None:
        self._path = Path(path).expanduser()
        self._delimiter = delimiter

    @property
    def source_type(self) -> str:
        return "csv"

    @property
    def source_detail(self) -> str:
        return str(self._path)

    def fetch(self) -> list[dict[str, str]]:
        rows: list[dict[str, str]] = []
        with self._path.open(encoding="utf-8-sig", newline="") as f:
            reader = csv.reader(f, delimiter=self._delimiter)
            header = [h.strip() for h in next(reader, [])]
            for values in reader:
                if not any(v.strip() for v in values):
                    continue
                padded = [v.strip() for v in values] + [""] * (len(header) - len(values))
                rows.append({h: padded[i] for i, h in enumerate(header) if h})
        logger.debug("Read %d rows from %s", len(rows), self._path)
        return rows
