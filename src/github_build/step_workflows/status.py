# step_workflows/status.py
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ..model import Job

if TYPE_CHECKING:
    from ..synthesizer import BuildState


def add_status_job(state: "BuildState") -> Optional[Job]:
    """Publish the result of every other job, even when some of them failed."""
    if state.options.skip_slack:
        return None

    state.console.print_step("Adding slack...")
    builder = (
        state.job_builder("slack")
        .name("Publish Statuses")
        .default_runs_on(state.defaults.ubuntu_runner)
        .needs(*state.new.jobs)
        .if_("always()")
        .step(
            "Publish Statuses",
            uses=state.action("slack"),
            default_with={
                "webhook-url": "${{secrets.SLACK_WEBHOOK_URL}}",
                "jobs": "${{toJSON(needs)}}",
            },
        )
    )
    return state.add_job(builder)
