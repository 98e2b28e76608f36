"""Job lifecycle: prompt file, external process, classification, edit."""

from .artifact import ScratchArtifact
from .classifier import Classification, OutputClassifier, Verdict
from .orchestrator import JobOrchestrator
from .state import Job, JobOutcome, JobStatus

__all__ = [
    "Classification",
    "Job",
    "JobOrchestrator",
    "JobOutcome",
    "JobStatus",
    "OutputClassifier",
    "ScratchArtifact",
    "Verdict",
]
