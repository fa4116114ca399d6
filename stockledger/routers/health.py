from fastapi import APIRouter

from stockledger.config import get_settings
from stockledger.core.business_calendar import current_business_date
from stockledger.core.dates import utc_now

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check():
    settings = get_settings()
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "time": utc_now().isoformat(),
        "business_date": current_business_date().isoformat(),
    }
