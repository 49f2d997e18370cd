# mashnet/engine/hooks.py
from typing import Protocol


class EngineHooks(Protocol):
    def scan(self, *, candidates: int, survivors: int, ms: float): ...
    def snap(self, *, phantoms: int, snaps: int, counts: dict, ms: float): ...
    def commit_chunk(self, result, *, points: int): ...
    def error(self, *, reason: str, exc: BaseException | None = None, **kw): ...
    def journal(self, ev): ...


class NoopHooks:
    def scan(self, **_):
        pass

    def snap(self, **_):
        pass

    def commit_chunk(self, *_, **__):
        pass

    def error(self, *_, **__):
        pass

    def journal(self, *_):
        pass
