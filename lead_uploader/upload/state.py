"""Tagged states of a bulk upload session."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from ..models import UploadResult


class Stage(str, Enum):
    INSPECT = "inspect"
    COMMIT = "commit"


@dataclass(frozen=True)
class Idle:
    """No file chosen, or the previous file was discarded."""


@dataclass(frozen=True)
class Analyzing:
    generation: int


@dataclass(frozen=True)
class ReadyToCommit:
    """Inspection succeeded; sheets may be adjusted before committing."""


@dataclass(frozen=True)
class Committing:
    pass


@dataclass(frozen=True)
class Done:
    result: UploadResult


@dataclass(frozen=True)
class Failed:
    message: str
    stage: Stage


SessionState = Union[Idle, Analyzing, ReadyToCommit, Committing, Done, Failed]


__all__ = ["Analyzing", "Committing", "Done", "Failed", "Idle", "ReadyToCommit", "SessionState", "Stage"]
