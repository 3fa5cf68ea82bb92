from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional
import typer
from rich import print
from rich.logging import RichHandler
from rich.table import Table

from nova_cloudctl.client import CloudControlClient
from nova_cloudctl.errors import CloudControlError
from nova_cloudctl.openstack.models import Credential

app = typer.Typer(add_completion=False)

CloudOpt = typer.Option(None, help="Cloud name from clouds.yaml")
CredentialsOpt = typer.Option(None, "--credentials", help="YAML file with endpoint, id and secret")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log HTTP calls")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def load_credential(cloud: Optional[str], credentials: Optional[Path]) -> Credential:
    from nova_cloudctl.openstack.connection import (
        credential_from_cloud,
        credential_from_env,
        credential_from_file,
    )

    if credentials is not None:
        return credential_from_file(credentials)
    if cloud is not None:
        return credential_from_cloud(cloud)
    return credential_from_env()


def build_client(strict_flavors: bool = False) -> CloudControlClient:
    return CloudControlClient(strict_flavors=strict_flavors)


def fail(e: CloudControlError):
    print(f"[red]{type(e).__name__}:[/red] {e}")
    raise typer.Exit(code=1)


def format_addresses(instance) -> str:
    return ", ".join(
        f"{net}={a.ip}({a.type})" for net, entries in instance.addresses.items() for a in entries
    )


@app.command()
def auth(cloud: str = CloudOpt, credentials: Path = CredentialsOpt):
    """
    Check that the application credential can obtain a token.
    """
    try:
        cred = load_credential(cloud, credentials)
        with build_client() as client:
            token = client.authenticate(cred)
    except CloudControlError as e:
        fail(e)
    print(f"[green]Authenticated[/green] against {cred.base_url} (token {token[:8]}...)")


@app.command()
def servers(
    cloud: str = CloudOpt,
    credentials: Path = CredentialsOpt,
    strict_flavors: bool = typer.Option(False, help="Fail instead of showing Unknown flavors"),
):
    try:
        cred = load_credential(cloud, credentials)
        with build_client(strict_flavors) as client:
            rows = client.list_instances(cred)
    except CloudControlError as e:
        fail(e)

    t = Table(title="Servers")
    t.add_column("ID")
    t.add_column("Name")
    t.add_column("Status")
    t.add_column("Flavor")
    t.add_column("VCPUs")
    t.add_column("RAM(MB)")
    t.add_column("Disk(GB)")
    t.add_column("Addresses")
    for s in rows:
        t.add_row(
            s.id, s.name, s.status, s.flavor.name,
            str(s.flavor.vcpus), str(s.flavor.ram), str(s.flavor.disk),
            format_addresses(s),
        )
    print(t)


@app.command()
def server(
    instance_id: str,
    cloud: str = CloudOpt,
    credentials: Path = CredentialsOpt,
    strict_flavors: bool = typer.Option(False, help="Fail instead of showing an Unknown flavor"),
):
    try:
        cred = load_credential(cloud, credentials)
        with build_client(strict_flavors) as client:
            s = client.get_instance(cred, instance_id)
    except CloudControlError as e:
        fail(e)
    print(
        {
            "id": s.id,
            "name": s.name,
            "status": s.status,
            "flavor": s.flavor.name,
            "vcpus": s.flavor.vcpus,
            "ram_mb": s.flavor.ram,
            "disk_gb": s.flavor.disk,
            "addresses": format_addresses(s),
            "power_state": s.power_state,
            "availability_zone": s.availability_zone,
            "created": s.created,
            "updated": s.updated,
        }
    )


@app.command()
def flavor(flavor_id: str, cloud: str = CloudOpt, credentials: Path = CredentialsOpt):
    try:
        cred = load_credential(cloud, credentials)
        with build_client() as client:
            f = client.get_flavor(cred, flavor_id)
    except CloudControlError as e:
        fail(e)
    print({"id": f.id, "name": f.name, "vcpus": f.vcpus, "ram_mb": f.ram, "disk_gb": f.disk})


@app.command()
def health(instance_id: str, cloud: str = CloudOpt, credentials: Path = CredentialsOpt):
    """
    Health-check one instance. Exits 1 when it is not ACTIVE.
    """
    try:
        cred = load_credential(cloud, credentials)
    except CloudControlError as e:
        fail(e)
    with build_client() as client:
        res = client.check_health(cred, instance_id)

    color = "green" if res.healthy else "red"
    print(f"[{color}]{res.status}[/{color}] {res.message} ({res.response_time_ms} ms)")
    if not res.healthy:
        raise typer.Exit(code=1)


@app.command()
def status(instance_id: str, cloud: str = CloudOpt, credentials: Path = CredentialsOpt):
    try:
        cred = load_credential(cloud, credentials)
        with build_client() as client:
            st = client.get_runtime_status(cred, instance_id)
    except CloudControlError as e:
        fail(e)
    print(
        {
            "instance_id": st.instance_id,
            "status": st.status,
            "power_state": st.power_state,
            "last_checked": st.last_checked.isoformat(),
        }
    )


@app.command()
def monitor(instance_id: str):
    """
    Show usage readings for an instance (simulated values).
    """
    with build_client() as client:
        m = client.monitor(instance_id)
    print(
        {
            "instance_id": m.instance_id,
            "cpu_usage": m.cpu_usage,
            "memory_usage": m.memory_usage,
            "disk_usage": m.disk_usage,
            "network_in_bytes": m.network_in_bytes,
            "network_out_bytes": m.network_out_bytes,
            "last_updated": m.last_updated.isoformat(),
        }
    )


@app.command()
def sync(name: str, cloud: str = CloudOpt, credentials: Path = CredentialsOpt):
    """
    Project all instances into storage records and save them as a local snapshot.
    """
    from nova_cloudctl.sync.state_store import write_snapshot

    try:
        cred = load_credential(cloud, credentials)
        with build_client() as client:
            records = client.sync_instances(cred)
    except CloudControlError as e:
        fail(e)

    snap = write_snapshot(name, records)
    print(f"[green]Synced[/green] {len(records)} instances into snapshot {snap['snapshot_id']}")


@app.command()
def snapshot(name: str):
    from nova_cloudctl.sync.state_store import read_snapshot

    try:
        snap = read_snapshot(name)
    except CloudControlError as e:
        fail(e)
    if not snap:
        print(f"[red]No snapshot found for[/red] {name}")
        raise typer.Exit(code=1)

    t = Table(title=f"Snapshot {snap['snapshot_id']} ({snap['synced_at']})")
    t.add_column("Instance")
    t.add_column("Name")
    t.add_column("Status")
    t.add_column("Flavor")
    t.add_column("Zone")
    for r in snap["records"]:
        t.add_row(r["instance_id"], r["name"], r["status"], r["flavor_name"], r["availability_zone"])
    print(t)
