from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse

import queries
from core.templating import templates
from session import current_user

router = APIRouter(prefix="/dashboard/customers", tags=["Customers"], dependencies=[Depends(current_user)])

@router.get("", response_class=HTMLResponse)
def list_customers(request: Request, query: str = Query("")):
    customers = queries.fetch_filtered_customers(query)
    return templates.TemplateResponse(request, "customers/list.html", {"customers": customers, "query": query})
