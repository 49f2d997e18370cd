# mashnet/io/engine_logging.py
import json
import logging
import sys
from dataclasses import asdict, is_dataclass

from mashnet.engine.hooks import NoopHooks
from mashnet.io.recorder import Recorder


def _default_json_logger(name="mashnet", level="INFO"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)

        class _JsonFormatter(logging.Formatter):
            def format(self, record: logging.LogRecord) -> str:
                payload = {
                    "level": record.levelname,
                    "msg": record.getMessage(),
                    "logger": record.name,
                }
                extra = getattr(record, "extra", None)
                if isinstance(extra, dict):
                    payload.update(extra)
                if record.exc_info:
                    payload["exc"] = self.formatException(record.exc_info)
                return json.dumps(payload, default=str)

        h.setFormatter(_JsonFormatter())
        logger.addHandler(h)
        logger.setLevel(level)
    return logger


class JournalHooks(NoopHooks):
    """Silent hooks that still forward change events to a recorder."""

    def __init__(self, recorder: Recorder | None = None):
        self.recorder = recorder

    def journal(self, ev):
        if self.recorder:
            self.recorder.emit(ev)


class EngineLogging(JournalHooks):
    """
    Structured logs for scans, snaps and committed chunks, plus journal fan-out.
    """

    def __init__(
        self,
        run_id: str = "local",
        level: str = "INFO",
        debug: bool = False,
        sample_every: int = 1,
        logger: logging.Logger | None = None,
        recorder: Recorder | None = None,
    ):
        super().__init__(recorder)
        self.run_id, self.debug, self.sample_every = run_id, debug, max(1, sample_every)
        self.log = logger or _default_json_logger(level=level)
        self._scans = 0
        self._snaps = 0

    def _emit(self, level: str, msg: str, **extra):
        payload = {"run_id": self.run_id}
        self.log.log(getattr(logging, level), msg, extra={"extra": {**payload, **extra}})

    @staticmethod
    def _shape(result) -> dict:
        return asdict(result) if is_dataclass(result) else {"result": repr(result)}

    # read path, sampled

    def scan(self, *, candidates: int, survivors: int, ms: float):
        self._scans += 1
        if self.debug and (self._scans % self.sample_every) == 0:
            self._emit("DEBUG", "scan", candidates=candidates, survivors=survivors, ms=round(ms, 3))

    def snap(self, *, phantoms: int, snaps: int, counts: dict, ms: float):
        self._snaps += 1
        if self.debug and (self._snaps % self.sample_every) == 0:
            self._emit("DEBUG", "snap", phantoms=phantoms, snaps=snaps, counts=counts, ms=round(ms, 3))

    # write path, always

    def commit_chunk(self, result, *, points: int):
        self._emit("INFO", "commit_chunk", points=points, **self._shape(result))

    def error(self, *, reason: str, exc: BaseException | None = None, **extra):
        self._emit("ERROR", "engine_error", reason=reason, error=str(exc) if exc else None, **extra)
