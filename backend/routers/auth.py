# routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, RedirectResponse

import crud
from core.settings import SESSION_COOKIE, SESSION_COOKIE_SECURE, SESSION_EXPIRE_MINUTES
from core.templating import templates

router = APIRouter(tags=["Auth"])

@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request):
    return templates.TemplateResponse(request, "login.html", {"state": crud.ActionState(), "values": {}})

@router.post("/login")
async def login(request: Request):
    form = await request.form()
    state = await run_in_threadpool(crud.authenticate, form)
    if not state.ok:
        # echo the e-mail back, never the password
        values = {"email": form.get("email") or ""}
        return templates.TemplateResponse(
            request, "login.html", {"state": state, "values": values}, status_code=400
        )
    response = RedirectResponse(state.redirect_to, status_code=303)
    response.set_cookie(
        SESSION_COOKIE, state.session_token,
        max_age=SESSION_EXPIRE_MINUTES * 60, httponly=True, samesite="lax",
        secure=SESSION_COOKIE_SECURE,
    )
    return response

@router.post("/logout")
def logout():
    response = RedirectResponse("/login", status_code=303)
    response.delete_cookie(SESSION_COOKIE)
    return response

@router.get("/signup", response_class=HTMLResponse)
def signup_page(request: Request):
    return templates.TemplateResponse(request, "signup.html", {"state": crud.ActionState(), "values": {}})

@router.post("/signup")
async def signup(request: Request):
    form = await request.form()
    state = await run_in_threadpool(crud.sign_up, form)
    if not state.ok:
        values = {"name": form.get("name") or "", "email": form.get("email") or ""}
        return templates.TemplateResponse(
            request, "signup.html", {"state": state, "values": values}, status_code=400
        )
    return RedirectResponse(state.redirect_to, status_code=303)
