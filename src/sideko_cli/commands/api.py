"""API commands -- inspect API projects registered with Sideko."""

from __future__ import annotations

import typer

from sideko_cli.output import info, print_table

api_app = typer.Typer(no_args_is_help=True)

API_URL_TEMPLATE = "https://{subdomain}.sideko.dev/{api}"


def api_url(subdomain: str, api_name: str) -> str:
    """Hosted url of API *api_name* in the organization with *subdomain*."""
    return API_URL_TEMPLATE.format(subdomain=subdomain, api=api_name)


@api_app.command("list")
def api_list() -> None:
    """List all APIs in your organization.

    Example::

        sideko api list
        sideko --json api list
    """
    from sideko_cli.client import client_from_config

    with client_from_config() as client:
        apis = client.list_apis()
        if not apis:
            info("No APIs found.")
            return
        org = client.get_organization()

    print_table(
        ["Name", "Versions", "URL", "ID", "Created At"],
        [
            [api.name, str(api.version_count), api_url(org.subdomain, api.name), api.id, api.created_at]
            for api in apis
        ],
        title="APIs",
    )
