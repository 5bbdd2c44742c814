"""Two-phase bulk lead upload: inspect, choose sheets, commit."""

from .progress import ManualScheduler, ProgressPhase, ProgressSource, SyntheticProgress, ThreadingScheduler
from .session import AnalysisInfo, SelectionError, UploadSession
from .sheets import SheetSelection
from .state import Analyzing, Committing, Done, Failed, Idle, ReadyToCommit, SessionState, Stage

__all__ = [
    "AnalysisInfo",
    "Analyzing",
    "Committing",
    "Done",
    "Failed",
    "Idle",
    "ManualScheduler",
    "ProgressPhase",
    "ProgressSource",
    "ReadyToCommit",
    "SelectionError",
    "SessionState",
    "SheetSelection",
    "Stage",
    "SyntheticProgress",
    "ThreadingScheduler",
    "UploadSession",
]
