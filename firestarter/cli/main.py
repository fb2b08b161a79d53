"""Firestarter CLI - Main commands."""
import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

from firestarter import (
    APIConfig,
    FirestarterClient,
    FirestarterError,
    SQLiteStorage,
    generate_credentials_from_address,
)

app = typer.Typer(
    name="firestarter",
    help="Pipe Network storage CLI",
    add_completion=False
)
console = Console()


# State database: ~/.config/firestarter/state.db
def get_state_path() -> Path:
    config_dir = Path.home() / ".config" / "firestarter"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir / "state.db"


def run_async(coro):
    """Run async function, reporting library errors."""
    try:
        return asyncio.run(coro)
    except FirestarterError as e:
        console.print(f"[red]{e.kind.value} error: {e.message}[/red]")
        raise typer.Exit(1)


@asynccontextmanager
async def open_client(require_login: bool = True):
    storage = SQLiteStorage(get_state_path())
    client = FirestarterClient(storage, config=APIConfig.from_env())
    try:
        if client.resume() is None and require_login:
            console.print("[red]Not logged in. Run 'firestarter login' first.[/red]")
            raise typer.Exit(1)
        yield client
    finally:
        await client.close()
        storage.close()


@app.command("create-account")
def create_account(
    username: str = typer.Option(None, "--username", "-u", help="Username (8+ chars)"),
    password: str = typer.Option(None, "--password", "-p", help="Password (8+ chars)"),
):
    """Create a new account and save it."""
    if not username:
        username = typer.prompt("Username")
    if not password:
        password = typer.prompt("Password", hide_input=True, confirmation_prompt=True)

    async def do_create():
        async with open_client(require_login=False) as client:
            account = await client.create_account(username, password)
            console.print(f"[green]Created account {account.username}[/green]")
            console.print(f"User ID: {account.user_id}")

    run_async(do_create())


@app.command()
def login(
    username: str = typer.Option(None, "--username", "-u", help="Username"),
    password: str = typer.Option(None, "--password", "-p", help="Password"),
):
    """Login and save credentials."""
    if not username:
        username = typer.prompt("Username")
    if not password:
        password = typer.prompt("Password", hide_input=True)

    async def do_login():
        async with open_client(require_login=False) as client:
            account = await client.login(username, password)
            console.print(f"[green]Logged in as {account.username}[/green]")
            console.print(f"State saved to: {get_state_path()}")

    run_async(do_login())


@app.command()
def logout():
    """Clear saved credentials. Tracked files are kept."""
    async def do_logout():
        async with open_client(require_login=False) as client:
            if client.account is None:
                console.print("[yellow]No active session[/yellow]")
                return
            client.logout()
            console.print("[green]Logged out successfully[/green]")

    run_async(do_logout())


@app.command()
def whoami():
    """Show the saved account."""
    async def show():
        async with open_client() as client:
            account = client.account
            console.print(f"Username: {account.username}")
            console.print(f"User ID: {account.user_id}")
            if account.token_expiry:
                console.print(f"Token expires: {account.token_expiry.isoformat()}")

    run_async(show())


@app.command()
def balance():
    """Show SOL and PIPE balances."""
    async def show():
        async with open_client() as client:
            result = await client.get_balance()
            console.print(f"SOL:  {result.sol}")
            console.print(f"PIPE: {result.pipe}")
            if result.public_key:
                console.print(f"Deposit address: {result.public_key}")

    run_async(show())


@app.command()
def upload(
    file_path: Path = typer.Argument(..., help="Local file to upload", exists=True, dir_okay=False),
    name: str = typer.Option(None, "--name", "-n", help="Name to store the file under"),
):
    """Upload a file."""
    async def do_upload():
        async with open_client() as client:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=console
            ) as progress:
                task = progress.add_task(f"Uploading {file_path.name}", total=100)

                def on_progress(percent: int):
                    progress.update(task, completed=percent)

                result = await client.upload(file_path, name, on_progress=on_progress)
                progress.update(task, completed=100)

            console.print(f"[green]Uploaded:[/green] {result.display_name}")
            console.print(f"Content ID: {result.identifier}")
            console.print(f"Size: {result.size:,} bytes")

    run_async(do_upload())


@app.command()
def download(
    file_name: str = typer.Argument(..., help="Name the file was uploaded under"),
    output: Path = typer.Option(None, "--output", "-o", help="Output file path"),
):
    """Download a file by its upload name."""
    async def do_download():
        async with open_client() as client:
            with console.status(f"Downloading {file_name}..."):
                path = await client.download_to(file_name, output or Path(file_name).name)
            console.print(f"[green]Downloaded:[/green] {path}")

    run_async(do_download())


@app.command()
def delete(
    file_name: str = typer.Argument(..., help="Name the file was uploaded under"),
):
    """Delete a file."""
    async def do_delete():
        async with open_client() as client:
            await client.delete(file_name)
            console.print(f"[green]Deleted:[/green] {file_name}")

    run_async(do_delete())


@app.command()
def files(
    long: bool = typer.Option(False, "-l", "--long", help="Long format with details"),
):
    """List files uploaded from this machine."""
    async def list_files():
        async with open_client() as client:
            records = client.list_files()
            if not records:
                console.print("[yellow]No tracked files[/yellow]")
                return

            if not long:
                for record in records:
                    console.print(record.display_name)
                return

            table = Table()
            table.add_column("Name")
            table.add_column("Size", justify="right")
            table.add_column("Uploaded", style="cyan")
            table.add_column("Content ID", style="dim")
            for record in records:
                table.add_row(
                    record.display_name,
                    f"{record.size:,}",
                    record.uploaded_at.strftime("%Y-%m-%d %H:%M"),
                    record.identifier[:16],
                )
            console.print(table)

    run_async(list_files())


@app.command()
def link(
    file_name: str = typer.Argument(..., help="Name the file was uploaded under"),
    title: str = typer.Option(None, "--title", help="Title for link previews"),
    description: str = typer.Option(None, "--description", help="Description for link previews"),
):
    """Create a public link for a file."""
    async def do_link():
        async with open_client() as client:
            public_link = await client.create_public_link(file_name, title, description)
            console.print(f"[green]Link hash:[/green] {public_link.link_hash}")
            console.print(f"URL: {public_link.share_url}")

    run_async(do_link())


@app.command()
def unlink(
    link_hash: str = typer.Argument(..., help="Public link hash"),
):
    """Delete a public link."""
    async def do_unlink():
        async with open_client() as client:
            await client.delete_public_link(link_hash)
            console.print(f"[green]Deleted link {link_hash}[/green]")

    run_async(do_unlink())


@app.command("public-download")
def public_download(
    link_hash: str = typer.Argument(..., help="Public link hash"),
    output: Path = typer.Option(..., "--output", "-o", help="Output file path"),
):
    """Download a file through a public link (no login needed)."""
    async def do_download():
        async with open_client(require_login=False) as client:
            data = await client.public_download(link_hash)
            output.write_bytes(data)
            console.print(f"[green]Downloaded:[/green] {output} ({len(data):,} bytes)")

    run_async(do_download())


@app.command()
def exchange(
    amount: float = typer.Argument(..., help="Amount of SOL to exchange"),
):
    """Exchange SOL for PIPE tokens."""
    async def do_exchange():
        async with open_client() as client:
            minted = await client.exchange(amount)
            console.print(f"[green]Received {minted} PIPE[/green]")

    run_async(do_exchange())


@app.command("wallet-creds")
def wallet_creds(
    address: str = typer.Argument(..., help="Wallet address"),
    show_password: bool = typer.Option(False, "--show-password", help="Print the derived password"),
):
    """Derive deterministic credentials from a wallet address."""
    try:
        creds = generate_credentials_from_address(address)
    except FirestarterError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)
    console.print(f"Username: {creds.username}")
    console.print(f"Password: {creds.password if show_password else '*' * len(creds.password)}")


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
