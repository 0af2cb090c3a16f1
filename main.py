from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from db.init import init_db
from dotenv import load_dotenv
import logging
import os

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

from routers import auth, fields, inquiries, settings, reports
from fastapi.middleware.cors import CORSMiddleware

logger = logging.getLogger(__name__)

origins = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]


app = FastAPI(title="Inquiry Master Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,          # cannot be ["*"] if allow_credentials=True
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
def startup():
    # Raises when the database is unreachable, so the server never starts serving.
    init_db()

@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Store error on {request.method} {request.url.path}: {str(exc)}")
    return JSONResponse(status_code=500, content={"detail": "Store failure"})

@app.get("/health")
def health_check():
    return {"status": "ok"}

# Routers
app.include_router(auth.router, prefix="/auth", tags=["Auth"])
app.include_router(fields.router, prefix="/fields", tags=["Fields"])
app.include_router(inquiries.router, prefix="/inquiries", tags=["Inquiries"])
app.include_router(settings.router, prefix="/settings", tags=["Settings"])
app.include_router(reports.router, tags=["Reports"])


@app.get("/")
def root():
    return {"message": "Inquiry Master Backend running successfully"}
