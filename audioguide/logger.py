"""Session event log for the audio guide.

Events go to stdout as short readable lines and to the log file as JSON
lines (``{"ts": ..., "event": ..., "data": {...}}``) so a tracking session
can be replayed or grepped afterwards.
"""

import json
from datetime import datetime
from typing import Optional, Callable


def _format_data(data: dict) -> str:
    return " ".join(f"{key}={value}" for key, value in data.items())


class Logger:
    """Writes guide events to stdout, a JSON-lines file and a callback"""

    def __init__(self, log_path: Optional[str] = None, callback: Optional[Callable] = None,
                 echo: bool = True):
        self.log_path = log_path
        self.callback = callback
        self.echo = echo
        self.file = None
        if log_path:
            self.file = open(log_path, "a", encoding="utf-8")
            self._write_record("Session opened", {"log": log_path})

    def _write_record(self, event: str, data: Optional[dict]):
        record = {"ts": datetime.now().isoformat(timespec="seconds"), "event": event}
        if data:
            record["data"] = data
        self.file.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
        self.file.flush()

    def log(self, event: str, data: Optional[dict] = None):
        """Log an event with optional structured data"""
        if self.echo:
            line = f"{datetime.now():%H:%M:%S} {event}"
            if data:
                line += f"  {_format_data(data)}"
            print(line)
        if self.file:
            self._write_record(event, data)
        if self.callback:
            self.callback(event, data)

    def close(self):
        if self.file:
            self._write_record("Session closed", None)
            self.file.close()
            self.file = None
