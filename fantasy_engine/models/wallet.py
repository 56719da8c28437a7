from enum import Enum
from pydantic import BaseModel, Field

from fantasy_engine.models.types import UTCDateTime


class TransactionType(str, Enum):
    PREDICTION_CORRECT = "PREDICTION_CORRECT"
    STREAK_BONUS = "STREAK_BONUS"
    REFERRAL = "REFERRAL"
    QUIZ_REWARD = "QUIZ_REWARD"
    DAILY_LOGIN = "DAILY_LOGIN"
    LEADERBOARD_PRIZE = "LEADERBOARD_PRIZE"
    ADMIN_ADJUSTMENT = "ADMIN_ADJUSTMENT"


class UserWallet(BaseModel):
    """Saldo cacheado. El log de transacciones es la fuente de verdad"""

    user_id: str = Field(..., alias="_id")

    balance: int = Field(0, ge=0)
    total_earned: int = 0
    total_spent: int = 0
    transaction_count: int = 0  # transacciones del log incluidas en este saldo

    updated_at: UTCDateTime

    class Config:
        populate_by_name = True


class CoinTransaction(BaseModel):
    """Entrada del ledger (solo se agregan). Única por (reference_id, type)"""

    id: str = Field(..., alias="_id")

    user_id: str
    type: TransactionType
    amount: int  # positivo = crédito, negativo = débito

    reference_id: str  # id del outcome, del referido, del quiz...
    description: str = ""

    created_at: UTCDateTime

    class Config:
        populate_by_name = True
        use_enum_values = True
