from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text

from marketplace.database import get_session
from marketplace.utils.clock import utcnow

router = APIRouter()


@router.get("/check")
def health_check(request: Request, session: Session = Depends(get_session)):
    try:
        session.exec(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        database = "failed"

    settings = request.app.state.settings

    return {
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "paymentProvider": request.app.state.gateway.provider,
        "webhooksEnabled": bool(settings.payment_webhook_secret),
        "env": settings.env,
        "timestamp": utcnow().isoformat(),
    }
