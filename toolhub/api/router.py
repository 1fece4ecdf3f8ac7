from fastapi import APIRouter

from toolhub.api.endpoints import (
    admin,
    ai_tool,
    coupon,
    like,
    notification,
    order,
    payment,
    plan,
    useful_website,
    user,
)

# Main API router
api_router = APIRouter()

# Include endpoint routers
api_router.include_router(user.router, prefix="/users", tags=["Users"])
api_router.include_router(plan.router, prefix="/plans", tags=["Plans"])
api_router.include_router(coupon.router, prefix="/coupons", tags=["Coupons"])
api_router.include_router(order.router, prefix="/orders", tags=["Orders"])
api_router.include_router(payment.router, prefix="/payments", tags=["Payments"])
api_router.include_router(
    notification.router, prefix="/notifications", tags=["Notifications"]
)
api_router.include_router(like.router, prefix="/likes", tags=["Likes"])
api_router.include_router(ai_tool.router, prefix="/ai-tools", tags=["AI Tools"])
api_router.include_router(
    useful_website.router, prefix="/useful-websites", tags=["Useful Websites"]
)
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
