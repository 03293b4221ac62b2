from .auth import AuthResponse, IdentitySnapshot, LoginRequest, SignupRequest
from .records import ChatDocument, Invoice, Product, ProductBatch, Supplier, Transaction, TransactionItem, UserAccount
from .tenant_config import Brand, Features, Localization, TenantConfig, UiTheme

# Define the public API of this module
__all__ = [
    "AuthResponse",
    "IdentitySnapshot",
    "LoginRequest",
    "SignupRequest",
    "ChatDocument",
    "Invoice",
    "Product",
    "ProductBatch",
    "Supplier",
    "Transaction",
    "TransactionItem",
    "UserAccount",
    "Brand",
    "Features",
    "Localization",
    "TenantConfig",
    "UiTheme",
]
