"""CSV export of relay network addresses."""

from __future__ import annotations

import csv
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Sequence

from .addresses import parse_or_address
from .models import RelayRecord
from .relays import EXIT_FLAG, GUARD_FLAG
from .util import temporary_path

_LOGGER = logging.getLogger("relaymap.csv")

CSV_HEADER = ("fingerprint", "ipaddr", "port")
ALL_CSV = "all.csv"
GUARDS_CSV = "guards.csv"
EXITS_CSV = "exits.csv"


@dataclass(frozen=True, slots=True)
class CsvExportResult:
    all_path: Path
    guards_path: Path
    exits_path: Path
    all_rows: int
    guard_rows: int
    exit_rows: int


def csv_rows(relay: RelayRecord) -> Iterator[tuple[str, str, int]]:
    """One `(fingerprint, ip, port)` row per parsable OR address."""
    for address in relay.or_addresses:
        parsed = parse_or_address(address)
        if parsed is None:
            continue
        ip, port = parsed
        yield (relay.fingerprint, str(ip), port)


class _CsvOutput:
    """CSV file written beside its target and renamed on finalize."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.tmp_path = temporary_path(path)
        self.rows = 0
        self._fh = self.tmp_path.open("w", encoding="utf-8", newline="")
        self._writer = csv.writer(self._fh, lineterminator="\n")
        self._writer.writerow(CSV_HEADER)

    def write_row(self, row: tuple[str, str, int]) -> None:
        self._writer.writerow(row)
        self.rows += 1

    def finalize(self) -> None:
        self._fh.close()
        os.replace(self.tmp_path, self.path)

    def discard(self) -> None:
        self._fh.close()
        self.tmp_path.unlink(missing_ok=True)


def export_relay_csvs(relays: Sequence[RelayRecord], output_dir: Path) -> CsvExportResult:
    output_dir.mkdir(parents=True, exist_ok=True)
    outputs: list[_CsvOutput] = []
    try:
        all_out = _CsvOutput(output_dir / ALL_CSV)
        outputs.append(all_out)
        guards_out = _CsvOutput(output_dir / GUARDS_CSV)
        outputs.append(guards_out)
        exits_out = _CsvOutput(output_dir / EXITS_CSV)
        outputs.append(exits_out)

        for relay in relays:
            is_guard = relay.has_flag(GUARD_FLAG)
            is_exit = relay.has_flag(EXIT_FLAG)
            for row in csv_rows(relay):
                all_out.write_row(row)
                if is_guard:
                    guards_out.write_row(row)
                if is_exit:
                    exits_out.write_row(row)
    except BaseException:
        for output in outputs:
            output.discard()
        raise

    for output in outputs:
        output.finalize()
    _LOGGER.info(
        "[csv] Wrote %s (%d rows), %s (%d rows), %s (%d rows).",
        all_out.path.name,
        all_out.rows,
        guards_out.path.name,
        guards_out.rows,
        exits_out.path.name,
        exits_out.rows,
    )
    return CsvExportResult(
        all_path=all_out.path,
        guards_path=guards_out.path,
        exits_path=exits_out.path,
        all_rows=all_out.rows,
        guard_rows=guards_out.rows,
        exit_rows=exits_out.rows,
    )
