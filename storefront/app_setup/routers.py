"""
Registre central des routers.
- Proxies: /api/verify-turnstile, /api/refresh, /api/login, /api/logout
- Service de paiement: /api/payments/*
- API v1 storefront: /api/v1/cart*, /api/v1/checkout/*, /api/v1/site/*
- Health & monitoring: /health*
"""
from fastapi import FastAPI

from storefront.proxies import views as proxies_views
from storefront.payments import views as payments_views
from storefront.checkout import views as checkout_views
from storefront.cart import views as cart_views
from storefront.site import views as site_views
from storefront.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # Proxies
    app.include_router(proxies_views.router)
    # Service de paiement
    app.include_router(payments_views.router)
    # API v1
    app.include_router(checkout_views.router)
    app.include_router(cart_views.router)
    app.include_router(site_views.router)
    # Health & monitoring
    app.include_router(health_router)
