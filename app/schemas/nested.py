"""Typed records for the JSON columns of listings and plans."""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class GeoPoint(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class ContactInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None


class PlanLimits(BaseModel):
    """Plan quotas; -1 means unlimited."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    max_places: int = Field(default=0, ge=-1)
    max_blogs: int = Field(default=0, ge=-1)
    max_photos: int = Field(default=0, ge=-1)
    featured_listing: bool = False
    analytics_access: bool = False
    priority_support: bool = False


NO_ACCESS_LIMITS = PlanLimits()

StringList = List[str]
IntList = List[int]
StringMap = Dict[str, str]
