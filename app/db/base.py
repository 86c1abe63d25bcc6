from app.db.base_class import Base


# IMPORT ALL MODELS HERE (THIS REGISTERS THEM WITH Base.metadata)
from app.models.user import User
from app.models.product import Product
from app.models.invoice import Invoice, InvoiceItem
from app.models.token_blacklist import TokenBlacklist
