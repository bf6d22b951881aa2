from zoneinfo import ZoneInfo

from doula.models.payment import PaymentStatus
from doula.models.pix import PixKeyType

SP_TZ = ZoneInfo("America/Sao_Paulo")

PIX_KEY_TYPE_LABELS = {
    PixKeyType.CPF: "CPF",
    PixKeyType.CNPJ: "CNPJ",
    PixKeyType.EMAIL: "E-mail",
    PixKeyType.PHONE: "Telefone",
    PixKeyType.RANDOM: "Chave aleatória",
}

PAYMENT_STATUS_LABELS = {
    PaymentStatus.PENDING: "Pendente",
    PaymentStatus.PARTIAL: "Parcial",
    PaymentStatus.PAID: "Pago",
}
