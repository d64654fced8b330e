from enum import Enum


class PaymentMethod(str, Enum):
    CASH = "CASH"
    BANK = "BANK"
    MPESA = "MPESA"


class MpesaTransactionStatus(str, Enum):
    PENDING = "PENDING"
    MATCHED = "MATCHED"
    UNMATCHED = "UNMATCHED"
    FAILED = "FAILED"

