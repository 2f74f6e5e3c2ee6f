"""Main CLI application"""

import json
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from shokulab.cli.init_cmd import init_command
from shokulab.errors import ContractError, PermissionDenied, ValidationError
from shokulab.utils.config import configure_logging
from shokulab.utils.japanese import format_ja_datetime, format_yen

app = typer.Typer(
    name="shokulab",
    help="Shokulab contract templates, negotiation and escrow fees",
    add_completion=False,
)

console = Console()


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    """Shokulab contract tooling"""
    configure_logging(log_level)


def _service():
    from shokulab.services.contract import get_contract_service
    return get_contract_service()


def _fail(error: ContractError) -> NoReturn:
    """Print a contract error and exit non-zero."""
    if isinstance(error, PermissionDenied):
        console.print(f"[red]Permission denied ({error.reason}): {error.message}[/red]")
        if error.action:
            console.print(f"[yellow]{error.action}[/yellow]")
    elif isinstance(error, ValidationError):
        console.print(f"[red]Invalid input: {error.message}[/red]")
    else:
        console.print(f"[red]Error: {error}[/red]")
    raise typer.Exit(code=1)


def _load_json(data: Optional[str]) -> dict:
    if not data:
        return {}
    try:
        value = json.loads(data)
    except json.JSONDecodeError:
        console.print("[red]Invalid JSON data[/red]")
        raise typer.Exit(code=1)
    if not isinstance(value, dict):
        console.print("[red]JSON data must be an object[/red]")
        raise typer.Exit(code=1)
    return {k: str(v) for k, v in value.items()}


@app.command("init")
def init():
    """Initialize the database schema"""
    init_command()


@app.command("templates")
def templates():
    """List available contract templates"""
    from shokulab.services.templates import get_template_registry

    table = Table(title="Contract Templates")
    table.add_column("ID", style="cyan")
    table.add_column("Title", style="green")
    table.add_column("Description")
    table.add_column("Fields", justify="right")

    for template in get_template_registry().list_templates():
        table.add_row(
            template.id,
            template.title,
            template.description,
            str(len(template.custom_fields)),
        )

    console.print(table)
    console.print("\nUse [cyan]python -m shokulab template <id> --fields[/cyan] to see the form fields")


@app.command("template")
def template_detail(
    template_id: str = typer.Argument(..., help="Template id (food_trading, food_exchange, event, equipment)"),
    fields: bool = typer.Option(False, "--fields", "-f", help="Show form fields"),
):
    """Show template details"""
    from shokulab.services.templates import get_template_registry

    registry = get_template_registry()
    template = registry.find_template(template_id)
    if not template:
        console.print(f"[red]Template '{template_id}' not found[/red]")
        console.print("Available templates: " + ", ".join(t.id for t in registry.list_templates()))
        raise typer.Exit(code=1)

    console.print(Panel(
        f"[bold]{template.title}[/bold]\n{template.user_friendly_title}\n\n{template.description}",
        title=f"Template: {template_id}",
        border_style="blue",
    ))

    if fields:
        table = Table(title="Fields")
        table.add_column("Key", style="cyan")
        table.add_column("Label", style="green")
        table.add_column("Type")
        table.add_column("Required")

        for field in template.custom_fields:
            table.add_row(field.key, field.label, field.type.value, "Yes" if field.required else "No")

        console.print(table)


@app.command("fee")
def fee(
    amount: int = typer.Argument(..., min=0, help="Contract value in yen"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Calculate the escrow fee for an amount"""
    from shokulab.services.fees import calculate_fee, recommend_payment_methods

    breakdown = calculate_fee(amount)
    if json_output:
        print(json.dumps({"amount": amount, **breakdown.model_dump()}))
        return

    console.print(f"契約金額: {format_yen(amount)}")
    console.print(f"手数料 ({breakdown.percentage}%): {format_yen(breakdown.fee)}")
    console.print(f"受取金額: {format_yen(breakdown.net_amount)}")
    names = ", ".join(m.name for m in recommend_payment_methods(amount))
    console.print(f"[dim]おすすめの支払い方法: {names}[/dim]")


@app.command("preview")
def preview(
    template_id: str = typer.Option(..., "--template", "-t", help="Template id"),
    data: str = typer.Option(None, "--data", "-d", help="JSON object of field values"),
    party_a: str = typer.Option(..., "--party-a", help="Name of party A (甲)"),
    party_b: str = typer.Option(..., "--party-b", help="Name of party B (乙)"),
):
    """Render contract text without saving it"""
    try:
        content = _service().preview_contract(template_id, _load_json(data), party_a, party_b)
    except ContractError as e:
        _fail(e)
    console.print(content, markup=False, highlight=False)


@app.command("create")
def create(
    template_id: str = typer.Option(..., "--template", "-t", help="Template id"),
    data: str = typer.Option(None, "--data", "-d", help="JSON object of field values"),
    value: str = typer.Option(..., "--value", "-v", help="Contract value in yen"),
    payment_method: str = typer.Option("shokulab_escrow", "--payment", "-p", help="Payment method id"),
    created_by: str = typer.Option(..., "--by", help="Creator user id"),
    party_a: str = typer.Option(..., "--party-a", help="Name of party A (甲)"),
    party_b: str = typer.Option(..., "--party-b", help="Name of party B (乙)"),
    receiver_id: Optional[str] = typer.Option(None, "--to", help="Counterparty user id"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Create a pending contract"""
    from shokulab.models.contract import ContractCreateInput

    request = ContractCreateInput(
        template_type=template_id,
        fields=_load_json(data),
        contract_value=value,
        payment_method=payment_method,
        created_by=created_by,
        party_a=party_a,
        party_b=party_b,
        receiver_id=receiver_id,
    )
    try:
        contract = _service().create_contract(request)
    except ContractError as e:
        _fail(e)

    if json_output:
        print(contract.model_dump_json())
        return
    console.print(f"[green][OK] Contract created: {contract.id}[/green] ({contract.status.value})")


@app.command("respond")
def respond(
    contract_id: str = typer.Argument(..., help="Contract id"),
    actor_id: str = typer.Option(..., "--actor", "-a", help="Responding user id"),
    decision: str = typer.Option(..., "--decision", "-d", help="agree or reject"),
    reason: Optional[str] = typer.Option(None, "--reason", "-r", help="Rejection reason"),
):
    """Agree to or reject a pending contract"""
    from shokulab.models.contract import ContractDecision

    try:
        decision_value = ContractDecision(decision)
    except ValueError:
        console.print("[red]Decision must be 'agree' or 'reject'[/red]")
        raise typer.Exit(code=1)

    try:
        result = _service().respond(contract_id, actor_id, decision_value, reason)
    except ContractError as e:
        _fail(e)

    console.print(f"[green][OK] Contract {contract_id} {result.contract.status.value}[/green]")
    if result.escrow_transaction:
        escrow = result.escrow_transaction
        console.print(
            f"Escrow transaction: amount {format_yen(escrow.amount)}, "
            f"fee {format_yen(escrow.fee)} ({escrow.status.value})"
        )


@app.command("show")
def show(
    contract_id: str = typer.Argument(..., help="Contract id"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Show a stored contract"""
    service = _service()
    try:
        contract = service.get_contract(contract_id)
        escrow = service.get_escrow_transaction(contract_id)
    except ContractError as e:
        _fail(e)

    if json_output:
        print(json.dumps({
            "contract": contract.model_dump(mode="json"),
            "escrow_transaction": escrow.model_dump(mode="json") if escrow else None,
        }, ensure_ascii=False))
        return

    lines = [
        f"[bold]{contract.title}[/bold] ({contract.template_type})",
        f"Status: {contract.status.value}",
        f"Created: {format_ja_datetime(contract.created_at)} by {contract.created_by}",
        f"Value: {format_yen(contract.contract_value)} / {contract.payment_method}",
    ]
    if contract.agreed_at:
        lines.append(f"Responded: {format_ja_datetime(contract.agreed_at)} by {contract.agreed_by}")
    if escrow:
        lines.append(f"Escrow: fee {format_yen(escrow.fee)} ({escrow.status.value})")
    console.print(Panel("\n".join(lines), title=contract.id, border_style="blue"))
    console.print(contract.generated_content, markup=False, highlight=False)


@app.command("verify")
def verify(
    user_id: str = typer.Argument(..., help="User id"),
    level: str = typer.Argument(..., help="unverified, basic, verified or premium"),
):
    """Record a user's verification level"""
    from shokulab.db.supabase import get_database
    from shokulab.models.verification import VerificationLevel

    try:
        level_value = VerificationLevel(level)
    except ValueError:
        console.print(f"[red]Unknown verification level: {level}[/red]")
        raise typer.Exit(code=1)

    try:
        get_database().set_verification_level(user_id, level_value)
    except ContractError as e:
        _fail(e)
    console.print(f"[green][OK] {user_id} is now {level_value.value}[/green]")


@app.command("export-pdf")
def export_pdf(
    contract_id: str = typer.Argument(..., help="Contract id"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output file path"),
):
    """Export a stored contract to PDF"""
    from pathlib import Path

    from shokulab.services.pdf_generator import ContractPdfExporter
    from shokulab.utils.config import get_settings

    settings = get_settings()
    try:
        contract = _service().get_contract(contract_id)
    except ContractError as e:
        _fail(e)

    path = output or str(Path(settings.contracts_dir) / f"contract_{contract.id}.pdf")
    ContractPdfExporter(timezone=settings.timezone).export(contract, path)
    console.print(f"[green][OK] Contract exported: {path}[/green]")


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind host"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
):
    """Run the contract API server"""
    import uvicorn

    from shokulab.utils.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "shokulab.api.app:create_app",
        factory=True,
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_level=settings.log_level.lower(),
    )
