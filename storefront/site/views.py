from fastapi import APIRouter, HTTPException

from storefront import config

router = APIRouter(prefix="/api/v1/site", tags=["Site"])

def require_products_available() -> None:
    """Dépendance: 503 quand la section produits est en maintenance (MAINTENANCE_PRODUCT)."""
    if config.MAINTENANCE_PRODUCT:
        raise HTTPException(status_code=503, detail="Products are under maintenance")

def marketplace_links() -> dict:
    return {"shopee": config.SHOPEE_URL, "tiktok": config.TIKTOK_SHOP_URL}

@router.get("/config")
def site_config():
    """Drapeaux de maintenance et liens marketplace pour le front."""
    return {
        "maintenance": {"auth": config.MAINTENANCE_AUTH, "product": config.MAINTENANCE_PRODUCT},
        "marketplace": marketplace_links(),
    }
