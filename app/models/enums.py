from enum import Enum


class UserRole(str, Enum):
    TRAVELER = "traveler"
    OWNER = "owner"
    ADMIN = "admin"


class ListingKind(str, Enum):
    PLACE = "place"
    BLOG = "blog"


class ListingStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"
    SUSPENDED = "suspended"
    ARCHIVED = "archived"


class ListingEvent(str, Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    EDIT = "edit"
    SUSPEND = "suspend"
    RESUBMIT = "resubmit"
    REACTIVATE = "reactivate"
    ARCHIVE = "archive"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    TRIAL = "trial"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    SUSPENDED = "suspended"


class BillingCycle(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class Currency(str, Enum):
    TRY = "TRY"
    USD = "USD"
    EUR = "EUR"


class PaymentStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"
    REFUNDED = "refunded"


class PriceLevel(str, Enum):
    BUDGET = "budget"
    MODERATE = "moderate"
    EXPENSIVE = "expensive"
    LUXURY = "luxury"


class BlogCategory(str, Enum):
    TRAVEL = "travel"
    FOOD = "food"
    CULTURE = "culture"
    HISTORY = "history"
    ACTIVITY = "activity"
    LIFESTYLE = "lifestyle"
    BUSINESS = "business"


class Language(str, Enum):
    TR = "tr"
    EN = "en"


class DiscountType(str, Enum):
    PERCENT = "percent"
    FIXED = "fixed"


class CouponScope(str, Enum):
    ALL_PLANS = "all_plans"
    SPECIFIC_PLANS = "specific_plans"


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
