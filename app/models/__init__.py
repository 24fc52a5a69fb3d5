from models.orm_user import UserEntity
from models.orm_listing import ListingEntity, PlaceEntity, BlogPostEntity
from models.orm_plan import PlanEntity
from models.orm_subscription import SubscriptionEntity
from models.orm_payment import PaymentEntity
from models.orm_listing_event import ListingEventEntity
from models.orm_coupon import CouponEntity, CouponRedemptionEntity
from models.orm_business import BusinessRegistrationEntity

__all__ = [
    "UserEntity",
    "ListingEntity",
    "PlaceEntity",
    "BlogPostEntity",
    "PlanEntity",
    "SubscriptionEntity",
    "PaymentEntity",
    "ListingEventEntity",
    "CouponEntity",
    "CouponRedemptionEntity",
    "BusinessRegistrationEntity",
]
