from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel


class PixKeyType(str, Enum):
    CPF = "cpf"
    CNPJ = "cnpj"
    EMAIL = "email"
    PHONE = "phone"
    RANDOM = "random"


class PixSettings(BaseModel):
    pix_key: str = ""
    pix_key_type: PixKeyType = PixKeyType.RANDOM
    beneficiary_name: str = ""
    city: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.pix_key.strip() and self.beneficiary_name.strip())


class DecodedPix(BaseModel):
    payload_format: str
    gui: str
    pix_key: str
    merchant_category_code: str
    currency: str
    amount: Decimal | None = None
    country_code: str
    merchant_name: str
    merchant_city: str
    txid: str = "***"
    crc: str
