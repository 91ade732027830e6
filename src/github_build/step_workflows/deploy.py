# step_workflows/deploy.py
from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Iterable, List, Optional

from ..catalog import SERVICES
from ..model import Job, Step
from .variables import output

if TYPE_CHECKING:
    from ..synthesizer import BuildState

AWS_CREDENTIALS = {
    "aws-access-key-id": "${{secrets.AWS_ACCESS_KEY_ID}}",
    "aws-secret-access-key": "${{secrets.AWS_SECRET_ACCESS_KEY}}",
    "aws-region": "${{secrets.AWS_DEFAULT_REGION}}",
}

ZIP_COMMAND = f'zip --quiet --recurse-paths "${{{{{output("BUILD_NAME")}}}}}.zip" ./*'


def any_deploy_flag(environments: Iterable[str]) -> str:
    return " || ".join(f"{output('DEPLOY_ON_' + env.upper())} == '1'" for env in environments)


def aggregate_condition(job_ids: Iterable[str], environments: Iterable[str]) -> str:
    """Run when some deploy target is requested and no upstream job failed."""
    condition = f"always() && ({any_deploy_flag(environments)})"
    for job_id in job_ids:
        condition += f" && needs.{job_id}.result != 'failure'"
    return f"${{{{{condition}}}}}"


def deploy_copy(step: Step) -> Step:
    """A recorded setup step as it runs inside the deploy job: always, without apt or services."""
    s = copy.deepcopy(step)
    s.if_ = None
    s.with_ = {k: v for k, v in s.with_.items() if not any(key in str(k) for key in ("apt", *SERVICES))}
    return s


# ---------------------------------------------------------------------
# CodeDeploy
# ---------------------------------------------------------------------

def add_codedeploy_jobs(state: "BuildState") -> List[Job]:
    if not state.exists(state.defaults.deployment_descriptor):
        return []

    state.console.print_step("Adding codedeploy...")
    environments = state.defaults.deploy_environments
    upstream = list(state.new.jobs)

    builder = (
        state.job_builder("codedeploy")
        .name("Code Deploy")
        .default_runs_on(state.defaults.ubuntu_runner)
        .needs(*upstream)
        .if_(aggregate_condition(upstream, environments))
    )

    if state.pre_deploy_steps:
        builder.add_steps(deploy_copy(s) for s in state.pre_deploy_steps)
    else:
        builder.step(
            "Checkout",
            uses=state.action("codedeploy/checkout"),
            default_with={"ssh-key": "${{secrets.SSH_KEY}}"},
        )

    (
        builder
        .step(
            "Update Packages",
            if_=f"${{{{{output('UPDATE_PACKAGES')} == '1'}}}}",
            shell="bash",
            run="touch update-packages",
        )
        .step("Zip", shell="bash", default_run=ZIP_COMMAND)
        .step(
            "S3Copy",
            uses=state.action("codedeploy/s3copy"),
            default_with={
                **AWS_CREDENTIALS,
                "source": "deployment",
                "target": "s3://${{secrets.CODEDEPLOY_BUCKET}}/${GITHUB_REPOSITORY}",
            },
        )
    )
    jobs = [state.add_job(builder)]

    for env in environments:
        title = env.capitalize()
        deploy = (
            state.job_builder(f"{env}_deploy")
            .name(f"{title} Deploy")
            .default_runs_on(state.defaults.ubuntu_runner)
            .needs("variables", "codedeploy")
            .if_(
                "${{always() && needs.codedeploy.result == 'success' && "
                f"{output('DEPLOY_ON_' + env.upper())} == '1'}}}}"
            )
            .step(
                f"{title} Deploy",
                uses=state.action("codedeploy/deploy"),
                default_with={
                    **AWS_CREDENTIALS,
                    "application-name": state.options.application_name,
                    "deployment-group-name": env,
                    "s3-bucket": "${{secrets.CODEDEPLOY_BUCKET}}",
                    "s3-key": f"${{GITHUB_REPOSITORY}}/${{{{{output('BUILD_NAME')}}}}}.zip",
                },
            )
        )
        jobs.append(state.add_job(deploy))

    return jobs


# ---------------------------------------------------------------------
# Direct AWS commands
# ---------------------------------------------------------------------

def add_aws_job(state: "BuildState") -> Optional[Job]:
    if not state.exists(state.defaults.aws_marker):
        return None

    state.console.print_step("Adding aws commands...")
    upstream = list(state.new.jobs)
    builder = (
        state.job_builder("aws")
        .name("AWS")
        .default_runs_on(state.defaults.ubuntu_runner)
        .needs(*upstream)
        .if_(aggregate_condition(upstream, state.defaults.deploy_environments))
        .step(
            "AWS Commands",
            uses=state.action("aws"),
            default_with={
                "ssh-key": "${{secrets.SSH_KEY}}",
                **AWS_CREDENTIALS,
                "shell-commands": 'echo "Add your commands here!"',
            },
        )
    )
    return state.add_job(builder)
