from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.db import models
from backend.app.db.session import get_session

router = APIRouter()

@router.get("")
async def list_vendors(db: Session = Depends(get_session)):
    vendors = db.execute(select(models.Vendor).order_by(models.Vendor.name)).scalars().all()
    rows = [
        {
            "id": vendor.id,
            "name": vendor.name,
            "category": vendor.category,
            "contact_email": vendor.contact_email,
            "contact_phone": vendor.contact_phone,
        }
        for vendor in vendors
    ]
    return {"data": rows, "count": len(rows)}
