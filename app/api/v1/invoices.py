from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, require_seller_or_admin
from app.db.session import get_db
from app.models.user import User
from app.schemas.invoice import InvoiceCreate, InvoiceResponse, InvoiceStatusUpdate, InvoiceUpdate
from app.services.invoice_service import InvoiceService
from app.utils.response import success

router = APIRouter()


@router.get("", response_model=List[InvoiceResponse])
@router.get("/", response_model=List[InvoiceResponse])
def get_invoices(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """All invoices with seller, client and items attached"""
    return InvoiceService.list_invoices(db)


@router.post(
    "",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create invoice",
    description="""
Creates an invoice together with its line items.

Validation:
1. `seller_id` must reference a user with the seller role
2. `client_id` must reference a user with the client role
3. `items` needs at least one entry; every `product_id` must exist
""",
    responses={
        201: {"description": "Invoice created"},
        403: {"description": "Seller or admin role required"},
        422: {"description": "Validation error"},
    },
)
def create_invoice(
    invoice_in: InvoiceCreate,
    current_user: User = Depends(require_seller_or_admin),
    db: Session = Depends(get_db),
):
    return InvoiceService.create_invoice(db, invoice_in, actor=current_user)


@router.get("/status/{invoice_status}", response_model=List[InvoiceResponse])
def get_invoices_by_status(
    invoice_status: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return InvoiceService.by_status(db, invoice_status)


@router.get("/seller/{seller_id}", response_model=List[InvoiceResponse])
def get_invoices_by_seller(
    seller_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return InvoiceService.by_seller(db, seller_id)


@router.get("/client/{client_id}", response_model=List[InvoiceResponse])
def get_invoices_by_client(
    client_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return InvoiceService.by_client(db, client_id)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return InvoiceService.get_invoice(db, invoice_id)


@router.put("/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(
    invoice_id: str,
    invoice_update: InvoiceUpdate,
    current_user: User = Depends(require_seller_or_admin),
    db: Session = Depends(get_db),
):
    """Partial update; a supplied ``items`` list replaces every existing line."""
    return InvoiceService.update_invoice(db, invoice_id, invoice_update, actor=current_user)


@router.patch("/{invoice_id}/status", response_model=InvoiceResponse)
def update_invoice_status(
    invoice_id: str,
    status_update: InvoiceStatusUpdate,
    current_user: User = Depends(require_seller_or_admin),
    db: Session = Depends(get_db),
):
    return InvoiceService.update_status(db, invoice_id, status_update.status, actor=current_user)


@router.delete("/{invoice_id}")
def delete_invoice(
    invoice_id: str,
    current_user: User = Depends(require_seller_or_admin),
    db: Session = Depends(get_db),
):
    InvoiceService.delete_invoice(db, invoice_id, actor=current_user)
    return success(message="Invoice deleted successfully")
