# bistro/routers/menu.py
# Public: GET. Admin: POST / PUT / PATCH / DELETE (hard delete; orders keep their own line snapshot)

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import MenuItems as DBMenuItems
from ..schemas.menu import MenuItemBase, MenuItemCreate, MenuItemRead, MenuItemUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/menu", tags=["menu"])

BOOL_COLUMNS = ("popular", "available")
NOT_NULL_FIELDS = ("name", "price", "category", "popular", "available", "sort_order")


def _get_or_404(db: Session, id: str) -> DBMenuItems:
    obj = db.get(DBMenuItems, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


def _apply(obj: DBMenuItems, values: dict) -> None:
    for field, value in values.items():
        if field in BOOL_COLUMNS:
            value = 1 if value else 0
        setattr(obj, field, value)


def _commit(db: Session, obj: DBMenuItems) -> DBMenuItems:
    try:
        db.commit()
        db.refresh(obj)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error saving menu item {obj.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to save menu item")
    return obj


@router.get("", response_model=list[MenuItemRead])
def list_menu(
    category: Optional[str] = None,
    include_unavailable: bool = False,
    db: Session = Depends(get_db),
):
    query = db.query(DBMenuItems)
    if category:
        query = query.filter(DBMenuItems.category == category)
    if not include_unavailable:
        query = query.filter(DBMenuItems.available == 1)
    try:
        return query.order_by(DBMenuItems.category, DBMenuItems.sort_order, DBMenuItems.name).all()
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to fetch menu")


@router.get("/{id}", response_model=MenuItemRead)
def get_menu_item(id: str, db: Session = Depends(get_db)):
    return _get_or_404(db, id)


@router.post("", response_model=MenuItemRead, status_code=status.HTTP_201_CREATED)
def create_menu_item(data: MenuItemCreate, db: Session = Depends(get_db)):
    if db.get(DBMenuItems, data.id):
        raise HTTPException(status_code=409, detail="Menu item already exists")

    obj = DBMenuItems(id=data.id)
    _apply(obj, data.model_dump(exclude={"id"}))
    db.add(obj)
    obj = _commit(db, obj)

    logger.info(f"Menu item created: {obj.id} ({obj.price:.2f})")
    return obj


@router.put("/{id}", response_model=MenuItemRead)
def replace_menu_item(id: str, data: MenuItemBase, db: Session = Depends(get_db)):
    obj = _get_or_404(db, id)
    _apply(obj, data.model_dump())
    return _commit(db, obj)


@router.patch("/{id}", response_model=MenuItemRead)
def update_menu_item(id: str, data: MenuItemUpdate, db: Session = Depends(get_db)):
    """Partial update; {"available": false} takes an item off the menu."""
    obj = _get_or_404(db, id)

    values = data.model_dump(exclude_unset=True)
    for field in NOT_NULL_FIELDS:
        if field in values and values[field] is None:
            raise HTTPException(status_code=422, detail=f"{field} cannot be null")

    _apply(obj, values)
    obj = _commit(db, obj)

    if "available" in values:
        logger.info(f"Menu item {obj.id} available={bool(obj.available)}")
    return obj


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_menu_item(id: str, db: Session = Depends(get_db)):
    obj = _get_or_404(db, id)
    try:
        db.delete(obj)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting menu item {id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete menu item")

    logger.info(f"Menu item deleted: {id}")
