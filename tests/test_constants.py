from doula.constants import PAYMENT_STATUS_LABELS, PIX_KEY_TYPE_LABELS, SP_TZ
from doula.models.payment import PaymentStatus
from doula.models.pix import PixKeyType


class TestLabels:
    def test_every_key_type_has_label(self):
        assert set(PIX_KEY_TYPE_LABELS) == set(PixKeyType)

    def test_random_key_label(self):
        assert PIX_KEY_TYPE_LABELS[PixKeyType.RANDOM] == "Chave aleatória"

    def test_every_status_has_label(self):
        assert set(PAYMENT_STATUS_LABELS) == set(PaymentStatus)
        assert PAYMENT_STATUS_LABELS[PaymentStatus.PARTIAL] == "Parcial"


class TestTimezone:
    def test_sao_paulo(self):
        assert str(SP_TZ) == "America/Sao_Paulo"
