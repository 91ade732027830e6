from .config import Defaults, Options
from .dsl import JobBuilder, build, merge_step
from .model import Job, Step, Workflow
from .runner import run_build
from .synthesizer import Synthesizer

__all__ = [
    "Defaults",
    "Options",
    "JobBuilder",
    "build",
    "merge_step",
    "Job",
    "Step",
    "Workflow",
    "run_build",
    "Synthesizer",
]
