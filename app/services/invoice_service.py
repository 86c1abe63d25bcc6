from typing import Iterable, List, Optional

import structlog
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from app.core.exceptions import InvoiceNotFound, NotFound, ValidationFailed
from app.core.validation import RuleSet, commit_or_conflict
from app.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from app.models.product import Product
from app.models.user import User, UserRole
from app.schemas.invoice import InvoiceCreate, InvoiceItemIn, InvoiceUpdate
from app.services.notifier import ChangeEvent, notifier
from app.services.user_service import UserService
from app.utils.ids import parse_uuid

logger = structlog.get_logger()

# Relations attached to every invoice representation, loaded up front.
INVOICE_RELATIONS = (
    joinedload(Invoice.seller),
    joinedload(Invoice.client),
    selectinload(Invoice.items).joinedload(InvoiceItem.product),
)

MUTABLE_FIELDS = ("seller_id", "client_id", "status")


class InvoiceService:

    @staticmethod
    def _query(db: Session) -> Query:
        return db.query(Invoice).options(*INVOICE_RELATIONS)

    @staticmethod
    def _reload(db: Session, invoice_id) -> Invoice:
        # populate_existing so the eager options replace state cached in the session
        return (
            InvoiceService._query(db)
            .populate_existing()
            .filter(Invoice.id == invoice_id)
            .one()
        )

    @staticmethod
    def _reference_rules(
        db: Session,
        seller_id=None,
        client_id=None,
        items: Optional[Iterable[InvoiceItemIn]] = None,
    ) -> RuleSet:
        rules = RuleSet(db)
        rules.exists("seller_id", User, seller_id, role=UserRole.SELLER)
        rules.exists("client_id", User, client_id, role=UserRole.CLIENT)
        for index, item in enumerate(items or []):
            field = f"items.{index}.product_id"
            rules.exists(field, Product, item.product_id, label=field)
        return rules

    @staticmethod
    def _build_items(items: Iterable[InvoiceItemIn]) -> List[InvoiceItem]:
        return [
            InvoiceItem(
                product_id=item.product_id,
                quantity=item.quantity,
                total_price=item.total_price,
            )
            for item in items
        ]

    @staticmethod
    def get_invoice(db: Session, invoice_id) -> Invoice:
        parsed = parse_uuid(invoice_id)
        invoice = InvoiceService._query(db).filter(Invoice.id == parsed).first() if parsed else None
        if not invoice:
            raise InvoiceNotFound()
        return invoice

    @staticmethod
    def list_invoices(db: Session) -> List[Invoice]:
        return InvoiceService._query(db).order_by(Invoice.created_at).all()

    @staticmethod
    def by_status(db: Session, status: str) -> List[Invoice]:
        if status not in InvoiceStatus.values():
            raise ValidationFailed(
                errors={"status": [f"Status must be one of: {', '.join(InvoiceStatus.values())}"]},
                message="Invalid status",
                status_code=400,
            )
        return (
            InvoiceService._query(db)
            .filter(Invoice.status == InvoiceStatus(status))
            .order_by(Invoice.created_at)
            .all()
        )

    @staticmethod
    def by_seller(db: Session, seller_id) -> List[Invoice]:
        seller = UserService.find_with_role(db, seller_id, UserRole.SELLER)
        if not seller:
            raise NotFound("Seller not found")
        return (
            InvoiceService._query(db)
            .filter(Invoice.seller_id == seller.id)
            .order_by(Invoice.created_at)
            .all()
        )

    @staticmethod
    def by_client(db: Session, client_id) -> List[Invoice]:
        client = UserService.find_with_role(db, client_id, UserRole.CLIENT)
        if not client:
            raise NotFound("Client not found")
        return (
            InvoiceService._query(db)
            .filter(Invoice.client_id == client.id)
            .order_by(Invoice.created_at)
            .all()
        )

    @staticmethod
    def create_invoice(db: Session, data: InvoiceCreate, actor: Optional[User] = None) -> Invoice:
        InvoiceService._reference_rules(db, data.seller_id, data.client_id, data.items).validate()

        invoice = Invoice(
            seller_id=data.seller_id,
            client_id=data.client_id,
            status=data.status,
            items=InvoiceService._build_items(data.items),
        )
        db.add(invoice)
        commit_or_conflict(db)

        invoice = InvoiceService._reload(db, invoice.id)
        logger.info("invoice_items_written", invoice_id=str(invoice.id), items=len(invoice.items))
        notifier.notify(ChangeEvent.CREATED, invoice, actor)
        return invoice

    @staticmethod
    def update_invoice(db: Session, invoice_id, data: InvoiceUpdate, actor: Optional[User] = None) -> Invoice:
        """Partial update; an ``items`` list replaces every existing line."""
        invoice = InvoiceService.get_invoice(db, invoice_id)
        update_data = data.model_dump(exclude_unset=True)

        InvoiceService._reference_rules(
            db,
            seller_id=update_data.get("seller_id"),
            client_id=update_data.get("client_id"),
            items=data.items if "items" in update_data else None,
        ).validate()

        for field in MUTABLE_FIELDS:
            if field in update_data:
                setattr(invoice, field, update_data[field])

        if "items" in update_data:
            # Full replace: orphaned lines are deleted before the new set is inserted.
            invoice.items.clear()
            db.flush()
            invoice.items.extend(InvoiceService._build_items(data.items))

        commit_or_conflict(db)

        invoice = InvoiceService._reload(db, invoice.id)
        notifier.notify(ChangeEvent.UPDATED, invoice, actor)
        return invoice

    @staticmethod
    def update_status(db: Session, invoice_id, status: InvoiceStatus, actor: Optional[User] = None) -> Invoice:
        """Any status may follow any other; only the value set is enforced."""
        invoice = InvoiceService.get_invoice(db, invoice_id)
        previous = invoice.status
        invoice.status = status
        commit_or_conflict(db)

        invoice = InvoiceService._reload(db, invoice.id)
        logger.info(
            "invoice_status_changed",
            invoice_id=str(invoice.id),
            previous_status=previous.value,
            status=invoice.status.value,
        )
        notifier.notify(ChangeEvent.UPDATED, invoice, actor)
        return invoice

    @staticmethod
    def delete_invoice(db: Session, invoice_id, actor: Optional[User] = None) -> None:
        invoice = InvoiceService.get_invoice(db, invoice_id)

        invoice.items.clear()
        db.flush()
        db.delete(invoice)
        commit_or_conflict(db)

        notifier.notify(ChangeEvent.DELETED, invoice, actor)
