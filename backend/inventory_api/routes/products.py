from dataclasses import dataclass
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from inventory_api.core.config import Settings
from inventory_api.core.database import get_db
from inventory_api.core.deps import (
    get_blob_store,
    get_current_user,
    get_settings_dep,
    require_admin,
    require_staff_or_admin,
)
from inventory_api.core.errors import ValidationError, validation_errors
from inventory_api.core.inventory_rules import STOCK_STATUS_FILTERS, classify_stock
from inventory_api.core.serialization_helpers import envelope
from inventory_api.models.user import User
from inventory_api.schemas.products import ProductIn, StockUpdateIn, project_movement, project_product
from inventory_api.services import catalog_service, product_service, stock_ledger
from inventory_api.services.blob_store import ImageUpload, validate_image


router = APIRouter()
logger = logging.getLogger(__name__)


@dataclass
class ProductSubmission:
    data: ProductIn
    image: Optional[ImageUpload] = None


async def read_product_submission(
    request: Request,
    settings: Settings = Depends(get_settings_dep),
) -> ProductSubmission:
    """Accept a product as a JSON body or as multipart form fields plus an optional `image` file."""
    image = None
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data") or content_type.startswith(
        "application/x-www-form-urlencoded"
    ):
        form = await request.form()
        payload = {key: value for key, value in form.items() if key != "image"}
        upload = form.get("image")
        if isinstance(upload, UploadFile) and upload.filename:
            image = ImageUpload(
                filename=upload.filename,
                content_type=upload.content_type or "application/octet-stream",
                content=await upload.read(),
            )
            validate_image(image, settings.max_upload_bytes)
    else:
        try:
            payload = await request.json()
        except ValueError:
            raise ValidationError([{"field": "body", "message": "Malformed JSON body"}])
        if not isinstance(payload, dict):
            raise ValidationError([{"field": "body", "message": "Expected a JSON object"}])

    try:
        data = ProductIn.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(validation_errors(exc.errors()))
    return ProductSubmission(data=data, image=image)


@router.get("")
def list_products(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(catalog_service.DEFAULT_PAGE_SIZE, ge=1, le=catalog_service.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, description="Search by name, Khmer name or SKU"),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    stock_status: str = Query("all", alias="stockStatus", pattern="^(" + "|".join(STOCK_STATUS_FILTERS) + ")$"),
):
    logger.info("list_products search=%s page=%s limit=%s", search, page, limit)
    items, pagination = catalog_service.list_products(
        db,
        user.role,
        page=page,
        limit=limit,
        search=search,
        category_id=category_id,
        stock_status=stock_status,
    )
    return envelope(items, pagination=pagination)


@router.get("/{product_id}")
def get_product(product_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return envelope(catalog_service.get_product(db, product_id, user.role))


@router.get("/{product_id}/movements")
def get_product_movements(
    product_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """Ledger entries for one product, newest first"""
    catalog_service.get_active_product(db, product_id)
    movements = [project_movement(m) for m in stock_ledger.list_movements(db, product_id, limit, offset)]
    return envelope(movements, count=len(movements))


@router.post("", status_code=201)
def create_product(
    admin: User = Depends(require_admin),
    submission: ProductSubmission = Depends(read_product_submission),
    db: Session = Depends(get_db),
    blob_store=Depends(get_blob_store),
):
    product = product_service.create_product(db, submission.data, admin.id, blob_store, submission.image)
    return envelope(project_product(product, admin.role), "Product created successfully")


@router.put("/{product_id}")
def update_product(
    product_id: int,
    admin: User = Depends(require_admin),
    submission: ProductSubmission = Depends(read_product_submission),
    db: Session = Depends(get_db),
    blob_store=Depends(get_blob_store),
):
    product = product_service.update_product(db, product_id, submission.data, admin.id, blob_store, submission.image)
    return envelope(project_product(product, admin.role), "Product updated successfully")


@router.patch("/{product_id}/stock")
def update_stock(
    product_id: int,
    data: StockUpdateIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
    user: User = Depends(require_staff_or_admin),
):
    adjustment = stock_ledger.adjust_stock(
        db,
        product_id,
        data.quantity,
        data.type.value,
        user.id,
        data.notes,
        max_attempts=settings.stock_update_max_attempts,
    )
    product = adjustment.product
    return envelope(
        {
            "previousQuantity": adjustment.previous_quantity,
            "newQuantity": adjustment.new_quantity,
            "stockStatus": classify_stock(adjustment.new_quantity, product.low_stock_threshold).value,
            "product": project_product(product, user.role),
        },
        "Stock updated successfully",
    )


@router.delete("/{product_id}")
def delete_product(product_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    product_service.soft_delete_product(db, product_id)
    return envelope(message="Product deleted successfully")
