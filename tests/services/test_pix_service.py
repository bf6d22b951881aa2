from decimal import Decimal
from unittest.mock import MagicMock, patch

from doula.models.payment import Payment
from doula.models.pix import PixKeyType, PixSettings
from doula.pix import decode_pix_payload
from doula.services.pix_service import PixService, default_qrcode_path, settings_from_env

PIX_SETTINGS = PixSettings(
    pix_key="doula@pix.com",
    pix_key_type=PixKeyType.EMAIL,
    beneficiary_name="Ana Lúcia Doula",
    city="Belo Horizonte",
)


class TestSettingsFromEnv:
    @patch("doula.services.pix_service.settings")
    def test_maps_fields(self, mock_settings):
        mock_settings.pix_key = "12345678900"
        mock_settings.pix_key_type = "cpf"
        mock_settings.pix_beneficiary_name = "Ana"
        mock_settings.pix_city = "Recife"

        result = settings_from_env()
        assert result == PixSettings(
            pix_key="12345678900", pix_key_type=PixKeyType.CPF, beneficiary_name="Ana", city="Recife"
        )

    @patch("doula.services.pix_service.settings")
    def test_unknown_key_type_falls_back(self, mock_settings):
        mock_settings.pix_key = "key"
        mock_settings.pix_key_type = "iban"
        mock_settings.pix_beneficiary_name = "Ana"
        mock_settings.pix_city = "Recife"

        assert settings_from_env().pix_key_type == PixKeyType.RANDOM

    @patch("doula.services.pix_service.settings_from_env")
    def test_service_defaults_to_env(self, mock_from_env):
        mock_from_env.return_value = PIX_SETTINGS
        assert PixService().pix_settings is PIX_SETTINGS


class TestBuildCharge:
    def test_pending_balance(self):
        service = PixService(PIX_SETTINGS)
        payment = Payment(id=42, client_name="Maria", amount=150000, amount_paid=50000)

        charge = service.build_charge(payment)

        assert charge is not None
        assert charge.payment_id == 42
        assert charge.amount == Decimal("1000")
        assert charge.txid == "PAG42"
        assert charge.qrcode_png[:4] == b"\x89PNG"
        decoded = decode_pix_payload(charge.payload)
        assert decoded.amount == Decimal("1000.00")
        assert decoded.txid == "PAG42"
        assert decoded.pix_key == "doula@pix.com"
        assert decoded.merchant_name == "Ana Lucia Doula"
        assert decoded.merchant_city == "Belo Horizonte"

    def test_fractional_amount(self):
        charge = PixService(PIX_SETTINGS).build_charge(Payment(id=1, amount=15050))
        assert "5406150.50" in charge.payload

    def test_payment_without_id_uses_default_txid(self):
        charge = PixService(PIX_SETTINGS).build_charge(Payment(amount=1000))
        assert charge.txid == "***"

    def test_paid_payment_returns_none(self):
        payment = Payment(id=1, amount=1000, amount_paid=1000)
        assert PixService(PIX_SETTINGS).build_charge(payment) is None

    def test_not_configured_returns_none(self):
        assert PixService(PixSettings()).build_charge(Payment(id=1, amount=1000)) is None


class TestBuildCustomCharge:
    def test_open_amount(self):
        charge = PixService(PIX_SETTINGS).build_custom_charge(None)
        assert charge.amount is None
        assert decode_pix_payload(charge.payload).amount is None

    def test_zero_amount_is_open(self):
        assert PixService(PIX_SETTINGS).build_custom_charge(Decimal("0")).amount is None

    def test_created_at_has_timezone(self):
        assert PixService(PIX_SETTINGS).build_custom_charge(Decimal("10")).created_at.tzinfo is not None


class TestStaticPayload:
    def test_configured(self):
        decoded = decode_pix_payload(PixService(PIX_SETTINGS).static_payload())
        assert decoded.amount is None
        assert decoded.txid == "***"

    def test_not_configured(self):
        assert PixService(PixSettings()).static_payload() is None


class TestSaveQrcode:
    def test_writes_png(self, tmp_path):
        charge = PixService(PIX_SETTINGS).build_charge(Payment(id=42, amount=1000))
        target = tmp_path / "nested" / "PAG42.png"

        path = PixService.save_qrcode(charge, str(target))

        assert target.read_bytes() == charge.qrcode_png
        assert path == str(target.resolve())


class TestDefaultQrcodePath:
    @patch("doula.services.pix_service.settings")
    def test_uses_txid(self, mock_settings, tmp_path):
        mock_settings.qrcode_output_dir = str(tmp_path)
        charge = MagicMock(txid="PAG7")
        assert default_qrcode_path(charge) == str(tmp_path / "PAG7.png")

    @patch("doula.services.pix_service.settings")
    def test_static_charge(self, mock_settings, tmp_path):
        mock_settings.qrcode_output_dir = str(tmp_path)
        charge = MagicMock(txid="***")
        assert default_qrcode_path(charge) == str(tmp_path / "static.png")
