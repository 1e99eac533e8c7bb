from campus_market.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    RefreshRequest,
    Token,
)
from campus_market.schemas.user import UserResponse, AuthResponse
from campus_market.schemas.wallet import (
    WalletBalance,
    WalletResponse,
    WalletTransactionResponse,
    WalletTransactionList,
)
from campus_market.schemas.withdrawal import (
    WithdrawalCreate,
    WithdrawalResponse,
    WithdrawalList,
    WithdrawalStats,
)

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "RefreshRequest",
    "Token",
    "UserResponse",
    "AuthResponse",
    "WalletBalance",
    "WalletResponse",
    "WalletTransactionResponse",
    "WalletTransactionList",
    "WithdrawalCreate",
    "WithdrawalResponse",
    "WithdrawalList",
    "WithdrawalStats",
]
