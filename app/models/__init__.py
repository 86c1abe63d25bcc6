from app.models.user import User, UserRole
from app.models.product import Product
from app.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from app.models.token_blacklist import TokenBlacklist
