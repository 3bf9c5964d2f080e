# orderdesk/api/routes_locations.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from orderdesk.api.deps import current_user, get_db
from orderdesk.models.location import City, Pincode
from orderdesk.models.user import User
from orderdesk.schemas.location import CityOut, PincodeOut

router = APIRouter()


@router.get("/cities", response_model=List[CityOut])
def list_cities(
        search: Optional[str] = Query(None),
        state: Optional[str] = Query(None),
        limit: int = Query(50, ge=1, le=500),
        db: Session = Depends(get_db),
        _me: User = Depends(current_user),
):
    q = db.query(City)
    if state:
        q = q.filter(City.state == state)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(City.city.ilike(like), City.alias.ilike(like)))
    return q.order_by(City.city.asc()).limit(limit).all()


@router.get("/pincodes", response_model=List[PincodeOut])
def list_pincodes(
        search: Optional[str] = Query(None),
        city_id: Optional[int] = Query(None),
        limit: int = Query(50, ge=1, le=500),
        db: Session = Depends(get_db),
        _me: User = Depends(current_user),
):
    """Autocomplete by pincode prefix or area name."""
    q = db.query(Pincode).options(selectinload(Pincode.city))
    if city_id is not None:
        q = q.filter(Pincode.city_id == city_id)
    if search:
        s = search.strip()
        q = q.filter(or_(Pincode.pincode.like(f"{s}%"), Pincode.area.ilike(f"%{s}%")))
    return q.order_by(Pincode.pincode.asc()).limit(limit).all()
