import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import bookings, catalog, checkout
from core.config import settings
from db.database import init_db

logging.basicConfig(level=settings.log_level)

app = FastAPI(title="Car Rental Checkout Engine", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health():
    return {"status": "ok"}


app.include_router(catalog.router)
app.include_router(checkout.router)
app.include_router(bookings.router)


@app.on_event("startup")
async def on_startup():
    await init_db()
