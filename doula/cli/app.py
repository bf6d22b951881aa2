import questionary
from rich.console import Console

from doula.cli.pix_menu import (
    decode_payload_menu,
    generate_charge_menu,
    pending_payment_menu,
    show_settings_menu,
)
from doula.services.pix_service import PixService

console = Console()


def main_menu() -> None:
    pix_service = PixService()

    console.print()
    console.print("[bold]Cobranças Pix[/bold]", style="cyan")
    console.print()

    while True:
        choice = questionary.select(
            "Menu Principal",
            choices=[
                "Gerar cobrança",
                "Cobrar saldo pendente",
                "Decodificar código",
                "Configuração",
                "Sair",
            ],
        ).ask()

        if choice is None or choice == "Sair":
            console.print("[bold]Até logo![/bold]")
            break
        elif choice == "Gerar cobrança":
            generate_charge_menu(pix_service)
        elif choice == "Cobrar saldo pendente":
            pending_payment_menu(pix_service)
        elif choice == "Decodificar código":
            decode_payload_menu()
        elif choice == "Configuração":
            show_settings_menu(pix_service)
