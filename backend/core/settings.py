# core/settings.py
import os
from dotenv import load_dotenv

load_dotenv()  # reads .env if present

APP_TITLE = os.getenv("APP_TITLE", "Pluto Dashboard")

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-this")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
SESSION_EXPIRE_MINUTES = int(os.getenv("SESSION_EXPIRE_MINUTES", "1440"))
SESSION_COOKIE = os.getenv("SESSION_COOKIE", "session")
SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "0") == "1"

# run ensure_schema() on startup
AUTO_CREATE_TABLES = os.getenv("AUTO_CREATE_TABLES", "1") == "1"
