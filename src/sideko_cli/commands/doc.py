"""Documentation commands -- list and deploy hosted documentation websites.

``sideko doc deploy`` starts a deployment and, unless ``--no-wait`` is
given, polls it until the service reports a terminal status.
"""

from __future__ import annotations

import time

import typer

from sideko_cli.output import debug, info, print_table, status, success

doc_app = typer.Typer(no_args_is_help=True)

POLL_INTERVAL = 2.0
DEPLOY_TIMEOUT = 900.0


@doc_app.command("list")
def doc_list() -> None:
    """List all documentation websites in your organization.

    Example::

        sideko doc list
    """
    from sideko_cli.client import client_from_config

    with client_from_config() as client:
        projects = client.list_doc_projects()

    if not projects:
        info("No documentation projects found.")
        return

    print_table(
        ["Name", "Title", "ID", "Preview URL", "Production URL", "Created At"],
        [
            [
                project.name,
                project.title,
                project.id,
                project.domains.preview or "",
                project.domains.production or "",
                project.created_at,
            ]
            for project in projects
        ],
        title="Documentation",
    )


@doc_app.command("deploy")
def doc_deploy(
    name: str = typer.Option(..., "--name", help="Name or id of the documentation project."),
    prod: bool = typer.Option(False, "--prod", help="Deploy to production instead of preview."),
    no_wait: bool = typer.Option(
        False, "--no-wait", help="Return as soon as the deployment is started."
    ),
) -> None:
    """Trigger a documentation website deployment to preview or production.

    Example::

        sideko doc deploy --name my-docs
        sideko doc deploy --name my-docs --prod --no-wait
    """
    from sideko_cli.client import client_from_config
    from sideko_cli.exceptions import RemoteError
    from sideko_cli.models import DEPLOYMENT_FAILED, DeploymentTarget

    target = DeploymentTarget.PRODUCTION if prod else DeploymentTarget.PREVIEW

    with client_from_config() as client:
        deployment = client.trigger_deployment(name, target)
        debug(f"Started deployment {deployment.id} ({deployment.status})")
        if no_wait:
            info(f"Deployment {deployment.id} to {target.value.lower()} started")
            return

        deadline = time.monotonic() + DEPLOY_TIMEOUT
        with status(f"📚 Deploying {name} to {target.value.lower()}..."):
            while not deployment.finished:
                if time.monotonic() > deadline:
                    raise RemoteError(
                        f"Timed out waiting for deployment {deployment.id}, "
                        f"last status: {deployment.status}"
                    )
                time.sleep(POLL_INTERVAL)
                deployment = client.get_deployment(name, deployment.id)
                debug(f"Deployment {deployment.id} status: {deployment.status}")

    if deployment.status in DEPLOYMENT_FAILED:
        raise RemoteError(f"Deployment {deployment.id} finished with status {deployment.status}")
    success(f"🚀 Deployed {name} to {target.value.lower()}")
