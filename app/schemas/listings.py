from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from models.enums import BlogCategory, Language, PriceLevel
from schemas.nested import ContactInfo, GeoPoint


class ListingBaseIn(BaseModel):
    summary: Optional[str] = Field(default=None, max_length=500)
    body: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=80)
    images: List[str] = Field(default_factory=list)


class PlaceIn(ListingBaseIn):
    title: str = Field(min_length=1, max_length=200)
    address: Optional[str] = Field(default=None, max_length=500)
    city: Optional[str] = Field(default=None, max_length=120)
    district: Optional[str] = Field(default=None, max_length=120)
    location: Optional[GeoPoint] = None
    contact_info: Optional[ContactInfo] = None
    features: List[str] = Field(default_factory=list)
    price_level: Optional[PriceLevel] = None
    nightly_price: Optional[float] = Field(default=None, ge=0)
    opening_hours: Dict[str, str] = Field(default_factory=dict)


class BlogIn(ListingBaseIn):
    title: str = Field(min_length=1, max_length=200)
    category: Optional[BlogCategory] = None
    tags: List[str] = Field(default_factory=list)
    language: Language = Language.TR
    seo_title: Optional[str] = Field(default=None, max_length=100)
    seo_description: Optional[str] = Field(default=None, max_length=300)


class PlaceUpdate(BaseModel):
    """Partial update; only the fields sent are applied."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    summary: Optional[str] = Field(default=None, max_length=500)
    body: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=80)
    images: Optional[List[str]] = None
    address: Optional[str] = Field(default=None, max_length=500)
    city: Optional[str] = Field(default=None, max_length=120)
    district: Optional[str] = Field(default=None, max_length=120)
    location: Optional[GeoPoint] = None
    contact_info: Optional[ContactInfo] = None
    features: Optional[List[str]] = None
    price_level: Optional[PriceLevel] = None
    nightly_price: Optional[float] = Field(default=None, ge=0)
    opening_hours: Optional[Dict[str, str]] = None


class BlogUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    summary: Optional[str] = Field(default=None, max_length=500)
    body: Optional[str] = None
    category: Optional[BlogCategory] = None
    images: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    language: Optional[Language] = None
    seo_title: Optional[str] = Field(default=None, max_length=100)
    seo_description: Optional[str] = Field(default=None, max_length=300)


class ListingOut(BaseModel):
    id: int
    kind: str
    owner_id: int
    title: str
    slug: str
    summary: Optional[str] = None
    body: Optional[str] = None
    category: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    status: str
    rejection_reason: Optional[str] = None
    suspension_reason: Optional[str] = None
    featured: bool
    verified: bool
    submitted_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PlaceOut(ListingOut):
    kind: Literal["place"]
    address: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    location: Optional[GeoPoint] = None
    contact_info: Optional[ContactInfo] = None
    features: Optional[List[str]] = None
    price_level: Optional[str] = None
    nightly_price: Optional[float] = None
    opening_hours: Optional[Dict[str, str]] = None


class BlogOut(ListingOut):
    kind: Literal["blog"]
    tags: Optional[List[str]] = None
    language: Optional[str] = None
    read_time: Optional[int] = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None


class PublicPlaceOut(BaseModel):
    id: int
    title: str
    slug: str
    summary: Optional[str] = None
    body: Optional[str] = None
    category: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    city: Optional[str] = None
    district: Optional[str] = None
    address: Optional[str] = None
    location: Optional[GeoPoint] = None
    contact_info: Optional[ContactInfo] = None
    features: Optional[List[str]] = None
    price_level: Optional[str] = None
    nightly_price: Optional[float] = None
    opening_hours: Optional[Dict[str, str]] = None
    featured: bool
    verified: bool
    published_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PublicBlogOut(BaseModel):
    id: int
    title: str
    slug: str
    summary: Optional[str] = None
    body: Optional[str] = None
    category: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    tags: Optional[List[str]] = None
    language: Optional[str] = None
    read_time: Optional[int] = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    published_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RejectIn(BaseModel):
    reason: str = Field(max_length=1000)


class SuspendIn(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class QueueItemOut(BaseModel):
    id: int
    kind: str
    owner_id: int
    title: str
    slug: str
    status: str
    images: List[str] = Field(default_factory=list)
    submitted_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class QueueOut(BaseModel):
    total: int
    items: List[QueueItemOut]
