"""PIX BR Code payload encoder and decoder following the BCB EMV QR Code specification.

Builds the payload string for a static PIX QR code ("Pix copia e cola"), parses
it back into its fields and renders it as a PNG image.
"""

from __future__ import annotations

import logging
import unicodedata
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from io import BytesIO

import qrcode
from qrcode.image.pil import PilImage

from doula.models.pix import DecodedPix

logger = logging.getLogger(__name__)

PIX_GUI = "br.gov.bcb.pix"
DEFAULT_TXID = "***"
MAX_NAME_LENGTH = 25
MAX_CITY_LENGTH = 15
MAX_FIELD_LENGTH = 99
CRC_TAG = "6304"
_CENT = Decimal("0.01")

_REQUIRED_TAGS = ("00", "26", "52", "53", "58", "59", "60", "63")


class PixDecodeError(ValueError):
    """Raised when a payload is not a well-formed PIX BR Code."""


def _tlv(tag: str, value: str) -> str:
    """Build a TLV (Tag-Length-Value) field."""
    if len(value) > MAX_FIELD_LENGTH:
        logger.warning(
            "PIX field %s has %d characters; the 2-digit length prefix cannot represent it",
            tag,
            len(value),
        )
    return f"{tag}{len(value):02d}{value}"


def _crc16_ccitt(data: str) -> str:
    """Compute CRC16-CCITT (0xFFFF) over the payload string."""
    crc = 0xFFFF
    for byte in data.encode("utf-8"):
        crc ^= byte << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = (crc << 1) ^ 0x1021
            else:
                crc <<= 1
            crc &= 0xFFFF
    return f"{crc:04X}"


def _strip_accents(text: str) -> str:
    """Remove accents for ASCII-safe PIX payload fields."""
    nfd = unicodedata.normalize("NFD", text)
    return "".join(c for c in nfd if not "\u0300" <= c <= "\u036f")


def _format_amount(amount: Decimal | float) -> str:
    """Format an amount with two decimals, rounding exact ties half-up.

    Floats are converted through their exact binary value, so 0.125 gives
    "0.13" while 1.005 (stored as 1.00499...) gives "1.00".
    """
    value = Decimal(amount)
    if not value.is_finite():
        return f"{amount:.2f}"
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return f"{value.quantize(_CENT, rounding=ROUND_HALF_UP):.2f}"


def generate_pix_payload(
    *,
    pix_key: str,
    beneficiary_name: str,
    city: str,
    amount: Decimal | float | None = None,
    txid: str = DEFAULT_TXID,
) -> str:
    """Generate a PIX BR Code payload string.

    Args:
        pix_key: The PIX key (CPF, CNPJ, phone, email, or random key), used verbatim.
        beneficiary_name: Recipient name (accents stripped, max 25 chars).
        city: Recipient city (accents stripped, max 15 chars).
        amount: Transaction amount in reais (e.g. 150.50). None or <= 0 for open amount.
        txid: Transaction ID (default "***").

    Returns:
        The complete BR Code payload string with CRC16.
    """
    name = _strip_accents(beneficiary_name)[:MAX_NAME_LENGTH]
    city_clean = _strip_accents(city)[:MAX_CITY_LENGTH]

    # Merchant Account Information (tag 26)
    mai = _tlv("00", PIX_GUI) + _tlv("01", pix_key)
    # Additional Data Field Template (tag 62)
    adft = _tlv("05", txid)

    payload = (
        _tlv("00", "01")  # Payload Format Indicator
        + _tlv("26", mai)  # Merchant Account Information
        + _tlv("52", "0000")  # Merchant Category Code
        + _tlv("53", "986")  # Transaction Currency (BRL)
    )

    if amount is not None and amount > 0:
        payload += _tlv("54", _format_amount(amount))

    payload += (
        _tlv("58", "BR")  # Country Code
        + _tlv("59", name)  # Merchant Name
        + _tlv("60", city_clean)  # Merchant City
        + _tlv("62", adft)  # Additional Data
    )

    # CRC16 placeholder: tag "63" + length "04" + actual CRC
    payload += CRC_TAG
    payload += _crc16_ccitt(payload)

    return payload


def parse_tlv(data: str) -> list[tuple[str, str]]:
    """Split a TLV string into ordered (tag, value) pairs."""
    fields: list[tuple[str, str]] = []
    pos = 0
    while pos < len(data):
        if pos + 4 > len(data):
            raise PixDecodeError(f"Truncated field header at position {pos}")
        tag = data[pos : pos + 2]
        length_str = data[pos + 2 : pos + 4]
        if not (length_str.isascii() and length_str.isdigit()):
            raise PixDecodeError(f"Invalid length {length_str!r} for tag {tag} at position {pos}")
        start = pos + 4
        end = start + int(length_str)
        if end > len(data):
            raise PixDecodeError(f"Field {tag} overruns the payload ({end} > {len(data)})")
        fields.append((tag, data[start:end]))
        pos = end
    return fields


def verify_crc(payload: str) -> bool:
    """Return True when the trailing CRC16 matches the rest of the payload."""
    if len(payload) < 8 or payload[-8:-4] != CRC_TAG:
        return False
    return _crc16_ccitt(payload[:-4]) == payload[-4:].upper()


def decode_pix_payload(payload: str) -> DecodedPix:
    """Parse a PIX BR Code payload back into its fields.

    Raises:
        PixDecodeError: the CRC does not match, the TLV structure is broken,
            a mandatory field is missing or the GUI is not the PIX arrangement.
    """
    payload = payload.strip()
    if not verify_crc(payload):
        raise PixDecodeError("CRC16 checksum mismatch")

    fields = dict(parse_tlv(payload))
    missing = [tag for tag in _REQUIRED_TAGS if tag not in fields]
    if missing:
        raise PixDecodeError(f"Missing mandatory fields: {', '.join(missing)}")

    account = dict(parse_tlv(fields["26"]))
    gui = account.get("00", "")
    if gui.lower() != PIX_GUI:
        raise PixDecodeError(f"Unexpected merchant account GUI: {gui!r}")
    if "01" not in account:
        raise PixDecodeError("Merchant account information has no PIX key")

    additional = dict(parse_tlv(fields["62"])) if "62" in fields else {}

    amount = None
    if "54" in fields:
        try:
            amount = Decimal(fields["54"])
        except InvalidOperation as exc:
            raise PixDecodeError(f"Invalid transaction amount: {fields['54']!r}") from exc

    decoded = DecodedPix(
        payload_format=fields["00"],
        gui=gui,
        pix_key=account["01"],
        merchant_category_code=fields["52"],
        currency=fields["53"],
        amount=amount,
        country_code=fields["58"],
        merchant_name=fields["59"],
        merchant_city=fields["60"],
        txid=additional.get("05", DEFAULT_TXID),
        crc=fields["63"].upper(),
    )
    logger.debug("Decoded PIX payload for key=%s amount=%s", decoded.pix_key, decoded.amount)
    return decoded


def generate_pix_qrcode_png(
    *,
    pix_key: str = "",
    beneficiary_name: str = "",
    city: str = "",
    amount: Decimal | float | None = None,
    txid: str = DEFAULT_TXID,
    box_size: int = 10,
    border: int = 2,
    payload: str = "",
) -> bytes:
    """Generate a PIX QR code as PNG bytes.

    Args:
        payload: Pre-computed payload string. If empty, generates one from the other args.

    Returns:
        PNG image bytes.
    """
    if not payload:
        payload = generate_pix_payload(
            pix_key=pix_key,
            beneficiary_name=beneficiary_name,
            city=city,
            amount=amount,
            txid=txid,
        )

    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img: PilImage = qr.make_image(fill_color="black", back_color="white")

    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
