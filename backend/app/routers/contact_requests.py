from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.settings import settings
from app.db.session import get_db
from app.schemas.contact_request import ContactRequestCreate, ContactRequestOut
from app.services import contact_requests as contact_service
from app.services.rate_limit import build_limiter

router = APIRouter(prefix="/contact-requests", tags=["contact"])

CONTACT_IP_LIMITER = build_limiter(max_events=settings.contact_requests_per_minute)


@router.post("", response_model=ContactRequestOut, status_code=status.HTTP_201_CREATED)
def create_contact_request(
    payload: ContactRequestCreate,
    request: Request,
    db: Session = Depends(get_db),
):
    ip_address = request.client.host if request.client else "unknown"
    if not CONTACT_IP_LIMITER.allow(ip_address):
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many requests")
    contact = contact_service.create_request(db, **payload.model_dump())
    db.commit()
    db.refresh(contact)
    return contact
