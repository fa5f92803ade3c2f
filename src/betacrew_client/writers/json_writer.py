"""Local JSON file output for the final record set."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..protocol.record import Record

logger = logging.getLogger(__name__)


def serialize_records(records: Sequence[Record], indent: Optional[int] = 2) -> str:
    """Render records as a JSON array in the order given."""
    payload: List[Dict[str, Any]] = [record.to_dict() for record in records]
    return json.dumps(payload, indent=indent)


class JsonFileWriter:
    """Writes the sorted record set to a JSON file."""

    def __init__(self, path: str, indent: Optional[int] = 2):
        self.path = Path(path)
        self.indent = indent

    async def write(self, records: Sequence[Record]) -> str:
        content = serialize_records(records, self.indent)
        await asyncio.get_running_loop().run_in_executor(None, self._write_file, content)
        logger.info(f"Output written to {self.path} ({len(records)} records)")
        return str(self.path)

    def _write_file(self, content: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(content, encoding="utf-8")
