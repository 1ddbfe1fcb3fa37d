"""Order endpoints: tracked mutations and the change history read API."""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import get_current_user
from app.db.session import get_db
from app.models.order import Order
from app.models.user import User
from app.schemas.history import HistoryPage
from app.schemas.order import OrderCreate, OrderRead, OrderUpdate, PreparationStatusUpdate
from app.services.order_change_tracker import OrderChangeTracker
from app.services.order_service import (
    InvalidOrderPayloadError,
    OrderNotFoundError,
    create_order,
    delete_order,
    load_order_aggregate,
    update_item_preparation_status,
    update_order,
)

router: APIRouter = APIRouter()


@router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
def create_order_endpoint(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Order:
    try:
        return create_order(db, payload, actor_id=current_user.id)
    except InvalidOrderPayloadError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/{order_id}", response_model=OrderRead)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Order:
    order = load_order_aggregate(db, order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.patch("/{order_id}", response_model=OrderRead)
def update_order_endpoint(
    order_id: int,
    payload: OrderUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Order:
    try:
        return update_order(db, order_id, payload, actor_id=current_user.id)
    except OrderNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidOrderPayloadError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.patch("/items/{item_id}/preparation-status", response_model=OrderRead)
def update_item_preparation_status_endpoint(
    item_id: int,
    payload: PreparationStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Order:
    try:
        return update_item_preparation_status(db, item_id, payload.preparation_status, actor_id=current_user.id)
    except OrderNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order_endpoint(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Response:
    try:
        delete_order(db, order_id, actor_id=current_user.id)
    except OrderNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{order_id}/history", response_model=HistoryPage)
def get_order_history(
    order_id: int,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.history_default_page_size, ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> HistoryPage:
    """Return the order's change log, oldest first; ``limit`` is capped server-side."""
    return OrderChangeTracker(db).get_history(order_id, page=page, limit=limit)
