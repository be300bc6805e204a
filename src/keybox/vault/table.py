# Keybox: Tabular Rendering
#
# Row-oriented tables produced by Box.list()/Box.find() and a plain-text
# writer for terminals. Columns are left-aligned and padded with spaces.

from dataclasses import dataclass, field
from typing import IO, Iterator, List, Optional, Sequence

from .codec import TEXT_ENCODING, TEXT_ERRORS
from .record import RECORD_HEADER, Record

COLUMN_GAP = "  "


@dataclass
class Table:
    """Rows of strings with an optional header row."""

    rows: List[List[str]] = field(default_factory=list)
    header: Optional[List[str]] = None

    @classmethod
    def from_records(cls, records: Sequence[Record], no_header: bool = False) -> "Table":
        return cls(
            rows=[r.row() for r in records],
            header=None if no_header else list(RECORD_HEADER),
        )

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def col_count(self) -> int:
        if self.header is not None:
            return len(self.header)
        if not self.rows:
            return 0
        return len(self.rows[0])

    def get(self, i: int, j: int) -> str:
        return self.rows[i][j]

    def column(self, j: int) -> List[str]:
        return [row[j] for row in self.rows]

    def all_rows(self) -> List[List[str]]:
        """Header (if any) followed by data rows."""
        if self.header is None:
            return list(self.rows)
        return [self.header] + self.rows

    def __iter__(self) -> Iterator[List[str]]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)


def printable(cell: str) -> str:
    """
    Text safe to write to any UTF-8 stream.

    Plaintext decrypted under the wrong master password carries undecodable
    bytes as lone surrogates; those are shown as U+FFFD.
    """
    return cell.encode(TEXT_ENCODING, TEXT_ERRORS).decode(TEXT_ENCODING, "replace")


def write_table(stream: IO[str], table: Table) -> None:
    """Write ``table`` to ``stream`` as aligned text, one line per row."""
    rows = [[printable(cell) for cell in row] for row in table.all_rows()]
    if not rows:
        return
    widths = [0] * table.col_count
    for row in rows:
        for j, cell in enumerate(row):
            widths[j] = max(widths[j], len(cell))
    for row in rows:
        cells = [cell.ljust(widths[j]) for j, cell in enumerate(row)]
        stream.write(COLUMN_GAP.join(cells).rstrip() + "\n")
