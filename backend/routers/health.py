import psycopg2
from fastapi import APIRouter

from core.dbutils import connection

router = APIRouter(tags=["Health"])

@router.get("/health")
def health():
    try:
        with connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
        database = "up"
    except psycopg2.Error:
        database = "down"
    return {"ok": True, "database": database}
