from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, require_seller_or_admin
from app.core.exceptions import ValidationFailed
from app.db.session import get_db
from app.models.user import User
from app.schemas.product import ProductCreate, ProductResponse, ProductUpdate
from app.services.product_service import ProductService
from app.utils.response import success

router = APIRouter()


@router.get("", response_model=List[ProductResponse])
@router.get("/", response_model=List[ProductResponse])
def get_products(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get all products"""
    return ProductService.list_products(db)


@router.get("/search/query", response_model=List[ProductResponse])
def search_products(
    query: str = Query(..., min_length=2, max_length=255),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Substring search over product name and description
    """
    return ProductService.search(db, query)


@router.get("/price-range/filter", response_model=List[ProductResponse])
def filter_by_price_range(
    min_price: Decimal = Query(..., ge=0),
    max_price: Decimal = Query(..., ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Products whose unit price lies in [min_price, max_price]"""
    if max_price < min_price:
        raise ValidationFailed(
            errors={"max_price": ["The max price must be greater than or equal to min price."]}
        )
    return ProductService.by_price_range(db, min_price, max_price)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ProductService.get_product(db, product_id)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    product_in: ProductCreate,
    current_user: User = Depends(require_seller_or_admin),
    db: Session = Depends(get_db),
):
    return ProductService.create_product(db, product_in, actor=current_user)


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: str,
    product_update: ProductUpdate,
    current_user: User = Depends(require_seller_or_admin),
    db: Session = Depends(get_db),
):
    return ProductService.update_product(db, product_id, product_update, actor=current_user)


@router.delete("/{product_id}")
def delete_product(
    product_id: str,
    current_user: User = Depends(require_seller_or_admin),
    db: Session = Depends(get_db),
):
    """Delete a product that no invoice item references"""
    ProductService.delete_product(db, product_id, actor=current_user)
    return success(message="Product deleted successfully")
