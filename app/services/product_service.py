from decimal import Decimal
from typing import List, Optional

import structlog
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.exceptions import Conflict, ProductNotFound
from app.core.validation import RuleSet, commit_or_conflict
from app.models.invoice import InvoiceItem
from app.models.product import Product
from app.models.user import User
from app.schemas.product import ProductCreate, ProductUpdate
from app.services.notifier import ChangeEvent, notifier
from app.utils.ids import parse_uuid

logger = structlog.get_logger()


class ProductService:

    @staticmethod
    def _name_rules(db: Session, name: Optional[str], exclude_id=None) -> RuleSet:
        return RuleSet(db).unique("name", Product.name, name, exclude_id=exclude_id)

    @staticmethod
    def get_product(db: Session, product_id) -> Product:
        parsed = parse_uuid(product_id)
        product = db.query(Product).filter(Product.id == parsed).first() if parsed else None
        if not product:
            raise ProductNotFound()
        return product

    @staticmethod
    def list_products(db: Session) -> List[Product]:
        return db.query(Product).order_by(Product.created_at).all()

    @staticmethod
    def search(db: Session, term: str) -> List[Product]:
        """Substring match on name or description; ``%`` and ``_`` match literally."""
        escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        return (
            db.query(Product)
            .filter(
                or_(
                    Product.name.like(pattern, escape="\\"),
                    Product.description.like(pattern, escape="\\"),
                )
            )
            .order_by(Product.name)
            .all()
        )

    @staticmethod
    def by_price_range(db: Session, min_price: Decimal, max_price: Decimal) -> List[Product]:
        return (
            db.query(Product)
            .filter(Product.unit_price.between(min_price, max_price))
            .order_by(Product.unit_price)
            .all()
        )

    @staticmethod
    def create_product(db: Session, data: ProductCreate, actor: Optional[User] = None) -> Product:
        ProductService._name_rules(db, data.name).validate()

        product = Product(
            name=data.name,
            description=data.description,
            unit_price=data.unit_price,
        )
        db.add(product)
        commit_or_conflict(db, recheck=lambda: ProductService._name_rules(db, data.name))
        db.refresh(product)

        notifier.notify(ChangeEvent.CREATED, product, actor)
        return product

    @staticmethod
    def update_product(db: Session, product_id, data: ProductUpdate, actor: Optional[User] = None) -> Product:
        product = ProductService.get_product(db, product_id)
        update_data = data.model_dump(exclude_unset=True)

        ProductService._name_rules(db, update_data.get("name"), exclude_id=product.id).validate()

        for field, value in update_data.items():
            setattr(product, field, value)

        commit_or_conflict(
            db,
            recheck=lambda: ProductService._name_rules(db, update_data.get("name"), exclude_id=product.id),
        )
        db.refresh(product)

        notifier.notify(ChangeEvent.UPDATED, product, actor)
        return product

    @staticmethod
    def count_references(db: Session, product_id) -> int:
        return (
            db.query(func.count(InvoiceItem.id))
            .filter(InvoiceItem.product_id == product_id)
            .scalar()
            or 0
        )

    @staticmethod
    def delete_product(db: Session, product_id, actor: Optional[User] = None) -> None:
        """Refuse while any invoice item still points at the product."""
        product = ProductService.get_product(db, product_id)

        references = ProductService.count_references(db, product.id)
        if references > 0:
            logger.info("product_delete_blocked", product_id=str(product.id), invoice_items_count=references)
            raise Conflict(
                f"Cannot delete product. It is used in {references} invoice item(s).",
                extra={"invoice_items_count": references},
            )

        db.delete(product)
        commit_or_conflict(db)

        notifier.notify(ChangeEvent.DELETED, product, actor)
