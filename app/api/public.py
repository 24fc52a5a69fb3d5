from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import get_db
from models.enums import ListingKind
from schemas.listings import PublicBlogOut, PublicPlaceOut
from services import listing_service


router = APIRouter(tags=["Public"])


@router.get("/places", response_model=List[PublicPlaceOut])
def list_places(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return listing_service.list_public(db, ListingKind.PLACE, limit, offset)


@router.get("/places/{slug}", response_model=PublicPlaceOut)
def get_place(slug: str, db: Session = Depends(get_db)):
    return listing_service.get_public(db, ListingKind.PLACE, slug)


@router.get("/blogs", response_model=List[PublicBlogOut])
def list_blogs(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return listing_service.list_public(db, ListingKind.BLOG, limit, offset)


@router.get("/blogs/{slug}", response_model=PublicBlogOut)
def get_blog(slug: str, db: Session = Depends(get_db)):
    return listing_service.get_public(db, ListingKind.BLOG, slug)
