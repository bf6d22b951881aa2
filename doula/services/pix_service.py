from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from pydantic import BaseModel

from doula.constants import SP_TZ
from doula.models.payment import Payment
from doula.models.pix import PixKeyType, PixSettings
from doula.pix import DEFAULT_TXID, generate_pix_payload, generate_pix_qrcode_png
from doula.settings import settings

logger = logging.getLogger(__name__)


class PixCharge(BaseModel):
    payment_id: int | None = None
    amount: Decimal | None = None
    txid: str = DEFAULT_TXID
    payload: str
    qrcode_png: bytes
    created_at: datetime


def settings_from_env() -> PixSettings:
    """Build PixSettings from the DOULA_PIX_* environment configuration."""
    try:
        key_type = PixKeyType(settings.pix_key_type)
    except ValueError:
        logger.warning("Unknown PIX key type %r, falling back to random", settings.pix_key_type)
        key_type = PixKeyType.RANDOM
    return PixSettings(
        pix_key=settings.pix_key,
        pix_key_type=key_type,
        beneficiary_name=settings.pix_beneficiary_name,
        city=settings.pix_city,
    )


def _txid_for(payment: Payment) -> str:
    if payment.id is None:
        return DEFAULT_TXID
    return f"PAG{payment.id}"


def default_qrcode_path(charge: PixCharge) -> str:
    """Suggested file for a charge's QR code under the configured output dir."""
    name = "static" if charge.txid == DEFAULT_TXID else charge.txid
    return str(Path(settings.qrcode_output_dir) / f"{name}.png")


class PixService:
    def __init__(self, pix_settings: PixSettings | None = None) -> None:
        self.pix_settings = pix_settings if pix_settings is not None else settings_from_env()

    def _payload(self, amount: Decimal | None, txid: str) -> str:
        return generate_pix_payload(
            pix_key=self.pix_settings.pix_key,
            beneficiary_name=self.pix_settings.beneficiary_name,
            city=self.pix_settings.city,
            amount=amount,
            txid=txid,
        )

    def build_charge(self, payment: Payment) -> PixCharge | None:
        """Build the PIX charge for a payment's pending balance.

        Returns None when no PIX key is configured or nothing is left to pay.
        """
        if not self.pix_settings.is_configured:
            logger.debug("PIX not configured, skipping charge for payment %s", payment.id)
            return None
        pending = payment.pending_amount
        if pending <= 0:
            logger.debug("Payment %s has no pending balance", payment.id)
            return None

        amount = Decimal(pending) / 100
        return self.build_custom_charge(amount, _txid_for(payment), payment_id=payment.id)

    def build_custom_charge(
        self,
        amount: Decimal | None,
        txid: str = DEFAULT_TXID,
        payment_id: int | None = None,
    ) -> PixCharge:
        payload = self._payload(amount, txid)
        png = generate_pix_qrcode_png(payload=payload)
        logger.info("PIX charge built: payment=%s amount=%s txid=%s", payment_id, amount, txid)
        return PixCharge(
            payment_id=payment_id,
            amount=amount if amount is not None and amount > 0 else None,
            txid=txid,
            payload=payload,
            qrcode_png=png,
            created_at=datetime.now(SP_TZ),
        )

    def static_payload(self) -> str | None:
        """Reusable amount-free payload for the configured key."""
        if not self.pix_settings.is_configured:
            return None
        return self._payload(None, DEFAULT_TXID)

    @staticmethod
    def save_qrcode(charge: PixCharge, path: str) -> str:
        """Write the charge's QR code PNG to ``path`` and return the resolved path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(charge.qrcode_png)
        resolved = str(target.resolve())
        logger.info("PIX QR code saved to %s (%d bytes)", resolved, len(charge.qrcode_png))
        return resolved
