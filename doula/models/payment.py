from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class PaymentStatus(str, Enum):
    PENDING = "pendente"
    PARTIAL = "parcial"
    PAID = "pago"


class Payment(BaseModel):
    id: int | None = None
    client_name: str = ""
    amount: int = 0  # centavos
    amount_paid: int = 0  # centavos

    @property
    def pending_amount(self) -> int:
        return max(self.amount - self.amount_paid, 0)

    @property
    def status(self) -> PaymentStatus:
        if self.pending_amount == 0:
            return PaymentStatus.PAID
        if self.amount_paid > 0:
            return PaymentStatus.PARTIAL
        return PaymentStatus.PENDING
