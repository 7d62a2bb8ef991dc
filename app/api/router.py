from fastapi import APIRouter

from app.api.auth import auth_router, setup_router
from app.api.companies import companies_router
from app.api.dashboard import dashboard_router
from app.api.feedback import feedback_router
from app.api.mobile import (
    mobile_admin_router,
    mobile_auth_router,
    mobile_feedback_router,
    mobile_misc_router,
    mobile_notifications_router,
    mobile_payments_router,
    mobile_profile_router,
    mobile_time_entries_router,
    mobile_users_router,
)
from app.api.notifications import notifications_router
from app.api.payments import payments_router
from app.api.time_entries import time_entries_router
from app.api.users import users_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(setup_router)
api_router.include_router(companies_router)
api_router.include_router(users_router)
api_router.include_router(time_entries_router)
api_router.include_router(payments_router)
api_router.include_router(notifications_router)
api_router.include_router(feedback_router)
api_router.include_router(dashboard_router)

api_router.include_router(mobile_auth_router)
api_router.include_router(mobile_profile_router)
api_router.include_router(mobile_time_entries_router)
api_router.include_router(mobile_payments_router)
api_router.include_router(mobile_users_router)
api_router.include_router(mobile_notifications_router)
api_router.include_router(mobile_feedback_router)
api_router.include_router(mobile_admin_router)
api_router.include_router(mobile_misc_router)
