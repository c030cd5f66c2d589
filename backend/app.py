# backend/app.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse

import crud
from core import hooks
from core.dbutils import connection, ensure_schema
from core.settings import APP_TITLE, AUTO_CREATE_TABLES
from core.templating import templates
from queries import FetchError
from routers import auth, customers, dashboard, expenses, health, invoices
from session import NotAuthenticated

log = logging.getLogger("uvicorn.error")

@asynccontextmanager
async def lifespan(app: FastAPI):
    if AUTO_CREATE_TABLES:
        with connection() as conn:
            ensure_schema(conn)
    yield

app = FastAPI(title=APP_TITLE, lifespan=lifespan)

# listing page each entity shows up on; /dashboard* responses are sent no-store
LISTING_PATHS = {
    "invoice": crud.INVOICES_PATH,
    "expense": crud.EXPENSES_PATH,
    "user": crud.DASHBOARD_PATH,
    "session": crud.DASHBOARD_PATH,
}

@hooks.on_mutation_committed
def log_stale_listing(entity: str, record_id: Optional[str]) -> None:
    path = LISTING_PATHS.get(entity)
    if path:
        log.info("Listing %s is stale after %s change", path, entity)

@app.middleware("http")
async def no_store_dashboard(request: Request, call_next):
    response = await call_next(request)
    if request.url.path.startswith("/dashboard"):
        response.headers["Cache-Control"] = "no-store"
    return response

@app.exception_handler(NotAuthenticated)
async def redirect_to_login(request: Request, exc: NotAuthenticated):
    return RedirectResponse("/login", status_code=303)

@app.exception_handler(FetchError)
async def fetch_failed(request: Request, exc: FetchError):
    return templates.TemplateResponse(request, "error.html", {"message": str(exc)}, status_code=500)

# mount routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(dashboard.router)
app.include_router(invoices.router)
app.include_router(expenses.router)
app.include_router(customers.router)

@app.get("/")
def root():
    return RedirectResponse("/dashboard", status_code=303)
