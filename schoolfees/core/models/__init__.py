from schoolfees.core.models.tenant import Tenant
from schoolfees.core.models.class_model import SchoolClass
from schoolfees.core.models.student import Student
from schoolfees.core.models.vote_head import VoteHead
from schoolfees.core.models.fee_schedule import FeeSchedule, FeeScheduleItem
from schoolfees.core.models.vote_head_balance import VoteHeadBalance
from schoolfees.core.models.payment import Payment, PaymentAllocation
from schoolfees.core.models.mpesa_transaction import MpesaTransaction

__all__ = [
    "Tenant",
    "SchoolClass",
    "Student",
    "VoteHead",
    "FeeSchedule",
    "FeeScheduleItem",
    "VoteHeadBalance",
    "Payment",
    "PaymentAllocation",
    "MpesaTransaction",
]
