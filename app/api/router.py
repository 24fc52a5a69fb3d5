from fastapi import APIRouter

from api.auth import router as auth_router
from api.owner import places_router, blogs_router
from api.subscriptions import router as subscriptions_router
from api.approvals import router as approvals_router
from api.admin import router as admin_router
from api.public import router as public_router
from api.business import router as business_router, admin_router as business_admin_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(places_router)
api_router.include_router(blogs_router)
api_router.include_router(subscriptions_router)
api_router.include_router(approvals_router)
api_router.include_router(admin_router)
api_router.include_router(public_router)
api_router.include_router(business_router)
api_router.include_router(business_admin_router)
