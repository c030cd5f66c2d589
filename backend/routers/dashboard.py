from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

import queries
from core.templating import templates
from models import User
from session import current_user

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

@router.get("", response_class=HTMLResponse)
def overview(request: Request, user: User = Depends(current_user)):
    return templates.TemplateResponse(
        request, "dashboard.html",
        {
            "user": user,
            "cards": queries.fetch_card_summary(user.id),
            "latest_invoices": queries.fetch_latest_invoices(),
            "latest_expenses": queries.fetch_latest_expenses(user.id),
        },
    )
