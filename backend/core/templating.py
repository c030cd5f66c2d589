# core/templating.py
from pathlib import Path

from fastapi.templating import Jinja2Templates

from core.money import format_date_for_input
from core.settings import APP_TITLE

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals["app_title"] = APP_TITLE
templates.env.filters["input_date"] = format_date_for_input
