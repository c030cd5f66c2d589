# routers/invoices.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, RedirectResponse

import crud
import queries
from core.templating import templates
from session import current_user

router = APIRouter(
    prefix="/dashboard/invoices", tags=["Invoices"], dependencies=[Depends(current_user)]
)

# --------- Listing ---------
@router.get("", response_class=HTMLResponse)
def list_invoices(
    request: Request,
    query: str = Query(""),
    page: int = Query(1, ge=1),
):
    invoices = queries.list_invoices(query, page)
    total_pages = queries.count_invoice_pages(query)
    return templates.TemplateResponse(
        request, "invoices/list.html",
        {"invoices": invoices, "query": query, "page": page, "total_pages": total_pages},
    )

# --------- Create ---------
@router.get("/create", response_class=HTMLResponse)
def create_invoice_page(request: Request):
    return templates.TemplateResponse(
        request, "invoices/form.html",
        {"customers": queries.fetch_customers(), "invoice": None, "values": {}, "state": crud.ActionState()},
    )

@router.post("/create")
async def create_invoice(request: Request):
    form = await request.form()
    state = await run_in_threadpool(crud.create_invoice, form)
    if state.ok:
        return RedirectResponse(state.redirect_to, status_code=303)
    customers = await run_in_threadpool(queries.fetch_customers)
    return templates.TemplateResponse(
        request, "invoices/form.html",
        {"customers": customers, "invoice": None, "values": dict(form), "state": state},
        status_code=400,
    )

# --------- Edit ---------
@router.get("/{id}/edit", response_class=HTMLResponse)
def edit_invoice_page(request: Request, id: str):
    invoice = queries.fetch_invoice_by_id(id)
    if invoice is None:
        return templates.TemplateResponse(
            request, "not_found.html", {"what": "invoice", "back": crud.INVOICES_PATH}, status_code=404
        )
    values = {"customer_id": invoice.customer_id, "amount": invoice.amount, "status": invoice.status}
    return templates.TemplateResponse(
        request, "invoices/form.html",
        {"customers": queries.fetch_customers(), "invoice": invoice, "values": values, "state": crud.ActionState()},
    )

@router.post("/{id}/edit")
async def update_invoice(request: Request, id: str):
    form = await request.form()
    state = await run_in_threadpool(crud.update_invoice, id, form)
    if state.ok:
        return RedirectResponse(state.redirect_to, status_code=303)
    customers = await run_in_threadpool(queries.fetch_customers)
    return templates.TemplateResponse(
        request, "invoices/form.html",
        {"customers": customers, "invoice": {"id": id}, "values": dict(form), "state": state},
        status_code=400,
    )

# --------- Delete ---------
@router.post("/{id}/delete")
def delete_invoice(id: str):
    # best effort; the listing is shown again either way
    crud.delete_invoice(id)
    return RedirectResponse(crud.INVOICES_PATH, status_code=303)
