"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from finca.api.routes import (
    auth, users, currencies, fx_rates, master_data,
    transactions, dashboard, export, reports, chat, ocr
)

api_router = APIRouter()

# Include all route modules
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(currencies.router)
api_router.include_router(fx_rates.router)
api_router.include_router(master_data.router)
api_router.include_router(transactions.router)
api_router.include_router(dashboard.router)
api_router.include_router(export.router)
api_router.include_router(reports.router)
api_router.include_router(chat.router)
api_router.include_router(ocr.router)
