"""
Append-only record of dispatched exchanges.

The node runs the notify hook several times for one transaction (on arrival
and again when it confirms). The engine itself keeps no state, so a ledger
file is how a deployment makes sure one incoming transaction is answered only
once. One JSON object per line, keyed by the incoming txid.
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, Field, ValidationError


class DispatchRecord(BaseModel):
    txid: str
    asset: str
    quantity: int
    to_address: str
    dispatched_txids: list[str] = Field(default_factory=list)
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())


class DispatchLedger:
    """
    JSON-lines file mapping incoming txid -> dispatched transfer.

    Check-then-record within one process; two hook processes racing on the
    same txid can still both dispatch.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def read_all(self) -> list[DispatchRecord]:
        if not self.path.exists():
            return []
        records: list[DispatchRecord] = []
        with self.path.open(encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(DispatchRecord.model_validate_json(line))
                except ValidationError as e:
                    logger.warning(f"Skipping unreadable ledger line {line_no} in {self.path}: {e}")
        return records

    def get(self, txid: str) -> DispatchRecord | None:
        for record in self.read_all():
            if record.txid == txid:
                return record
        return None

    def contains(self, txid: str) -> bool:
        return self.get(txid) is not None

    def record(self, record: DispatchRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(record.model_dump_json() + "\n")
        logger.debug(f"Recorded dispatch for {record.txid} in {self.path}")
