from __future__ import annotations

from decimal import Decimal

import questionary
from rich.console import Console
from rich.table import Table

from doula.constants import PAYMENT_STATUS_LABELS, PIX_KEY_TYPE_LABELS
from doula.models import format_brl, parse_brl
from doula.models.payment import Payment
from doula.pix import DEFAULT_TXID, PixDecodeError, decode_pix_payload
from doula.services.pix_service import PixCharge, PixService, default_qrcode_path

console = Console()


def _cancelled() -> None:
    console.print("[yellow]Operação cancelada.[/yellow]")


def _ask_centavos(message: str, minimum: int = 1, allow_empty: bool = False) -> tuple[bool, int | None]:
    """Prompt until a valid BRL amount is typed.

    Returns ``(answered, centavos)``; ``answered`` is False when the prompt was cancelled.
    """
    while True:
        text = questionary.text(message).ask()
        if text is None:
            return False, None
        if allow_empty and not text.strip():
            return True, None
        parsed = parse_brl(text)
        if parsed is not None and parsed >= minimum:
            return True, parsed
        console.print("[red]Valor inválido. Tente novamente.[/red]")


def _show_charge(charge: PixCharge) -> None:
    console.print()
    if charge.amount is not None:
        console.print(f"  Valor: {format_brl(int(charge.amount * 100))}")
    else:
        console.print("  Valor: livre")
    console.print("  Pix copia e cola:")
    console.print(charge.payload, soft_wrap=True)

    save = questionary.confirm("Salvar QR code?", default=False).ask()
    if not save:
        return
    path = questionary.text("Arquivo do QR code:", default=default_qrcode_path(charge)).ask()
    if not path:
        _cancelled()
        return
    saved = PixService.save_qrcode(charge, path)
    console.print(f"[green]QR code salvo em {saved}[/green]")


def _not_configured(pix_service: PixService) -> bool:
    if pix_service.pix_settings.is_configured:
        return False
    console.print("[yellow]Chave Pix não configurada. Defina DOULA_PIX_KEY e DOULA_PIX_BENEFICIARY_NAME.[/yellow]")
    return True


def generate_charge_menu(pix_service: PixService) -> None:
    console.print()
    console.print("[bold]Gerar Cobrança Pix[/bold]", style="cyan")

    if _not_configured(pix_service):
        return

    answered, centavos = _ask_centavos("Valor (ex: 150.50, vazio para valor livre):", allow_empty=True)
    if not answered:
        _cancelled()
        return
    amount = Decimal(centavos) / 100 if centavos is not None else None

    txid = questionary.text("Identificador da transação (opcional):").ask()
    if txid is None:
        _cancelled()
        return

    charge = pix_service.build_custom_charge(amount, txid.strip() or DEFAULT_TXID)
    _show_charge(charge)


def pending_payment_menu(pix_service: PixService) -> None:
    console.print()
    console.print("[bold]Cobrar Saldo Pendente[/bold]", style="cyan")

    if _not_configured(pix_service):
        return

    client_name = questionary.text("Nome da cliente:").ask()
    if not client_name:
        _cancelled()
        return

    answered, total = _ask_centavos("Valor total (ex: 1500.00):")
    if not answered:
        _cancelled()
        return
    answered, paid = _ask_centavos("Valor já pago (ex: 500.00, vazio se nada):", minimum=0, allow_empty=True)
    if not answered:
        _cancelled()
        return

    payment = Payment(client_name=client_name, amount=total, amount_paid=paid or 0)
    console.print()
    console.print(f"  Cliente: {payment.client_name}")
    console.print(f"  Situação: {PAYMENT_STATUS_LABELS[payment.status]}")
    console.print(f"  Saldo pendente: {format_brl(payment.pending_amount)}")

    charge = pix_service.build_charge(payment)
    if charge is None:
        console.print("[green]Nada a cobrar.[/green]")
        return
    _show_charge(charge)

def decode_payload_menu() -> None:
    console.print()
    console.print("[bold]Decodificar Código Pix[/bold]", style="cyan")

    payload = questionary.text("Cole o código Pix:").ask()
    if not payload:
        _cancelled()
        return

    try:
        decoded = decode_pix_payload(payload)
    except PixDecodeError as exc:
        console.print(f"[red]Código inválido: {exc}[/red]")
        return

    table = Table()
    table.add_column("Campo")
    table.add_column("Valor")
    table.add_row("Chave Pix", decoded.pix_key)
    table.add_row("Beneficiário", decoded.merchant_name)
    table.add_row("Cidade", decoded.merchant_city)
    table.add_row(
        "Valor",
        format_brl(int(decoded.amount * 100)) if decoded.amount is not None else "livre",
    )
    table.add_row("Identificador", decoded.txid)
    table.add_row("CRC", decoded.crc)
    console.print(table)


def show_settings_menu(pix_service: PixService) -> None:
    pix_settings = pix_service.pix_settings

    console.print()
    console.print("[bold]Configuração Pix[/bold]", style="cyan")

    if not pix_settings.is_configured:
        console.print("[yellow]Chave Pix não configurada.[/yellow]")
        return

    console.print(f"  {PIX_KEY_TYPE_LABELS.get(pix_settings.pix_key_type, 'Chave Pix')}: {pix_settings.pix_key}")
    console.print(f"  Beneficiário: {pix_settings.beneficiary_name}")
    console.print(f"  Cidade: {pix_settings.city}")
    console.print("  Código estático:")
    console.print(pix_service.static_payload(), soft_wrap=True)
