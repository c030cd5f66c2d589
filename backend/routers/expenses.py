# routers/expenses.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, RedirectResponse

import crud
import queries
from core.templating import templates
from models import User
from session import current_user

router = APIRouter(prefix="/dashboard/expenses", tags=["Expenses"])

# ---------- Listing ----------
@router.get("", response_class=HTMLResponse)
def list_expenses(
    request: Request,
    query: str = Query(""),
    page: int = Query(1, ge=1),
    user: User = Depends(current_user),
):
    expenses = queries.list_expenses(user.id, query, page)
    total_pages = queries.count_expense_pages(user.id, query)
    return templates.TemplateResponse(
        request, "expenses/list.html",
        {"expenses": expenses, "query": query, "page": page, "total_pages": total_pages},
    )

# ---------- Create ----------
@router.get("/create", response_class=HTMLResponse)
def create_expense_page(request: Request, user: User = Depends(current_user)):
    return templates.TemplateResponse(
        request, "expenses/form.html", {"expense": None, "values": {}, "state": crud.ActionState()}
    )

@router.post("/create")
async def create_expense(request: Request, user: User = Depends(current_user)):
    form = await request.form()
    state = await run_in_threadpool(crud.create_expense, user.id, form)
    if state.ok:
        return RedirectResponse(state.redirect_to, status_code=303)
    return templates.TemplateResponse(
        request, "expenses/form.html",
        {"expense": None, "values": dict(form), "state": state},
        status_code=400,
    )

# ---------- Edit ----------
@router.get("/{id}/edit", response_class=HTMLResponse)
def edit_expense_page(request: Request, id: str, user: User = Depends(current_user)):
    expense = queries.fetch_expense_by_id(user.id, id)
    if expense is None:
        return templates.TemplateResponse(
            request, "not_found.html", {"what": "expense", "back": crud.EXPENSES_PATH}, status_code=404
        )
    values = {
        "amount": expense.amount,
        "description": expense.description or "",
        "spent_date": expense.spent_date,
    }
    return templates.TemplateResponse(
        request, "expenses/form.html", {"expense": expense, "values": values, "state": crud.ActionState()}
    )

@router.post("/{id}/edit")
async def update_expense(request: Request, id: str, user: User = Depends(current_user)):
    form = await request.form()
    state = await run_in_threadpool(crud.update_expense, user.id, id, form)
    if state.ok:
        return RedirectResponse(state.redirect_to, status_code=303)
    return templates.TemplateResponse(
        request, "expenses/form.html",
        {"expense": {"id": id}, "values": dict(form), "state": state},
        status_code=400,
    )

# ---------- Delete ----------
@router.post("/{id}/delete")
def delete_expense(id: str, user: User = Depends(current_user)):
    crud.delete_expense(user.id, id)
    return RedirectResponse(crud.EXPENSES_PATH, status_code=303)
