"""
Main API router.
"""

from fastapi import APIRouter
from budgeting.api import users, incomes, income_sources, expenses, net_worth

api_router = APIRouter()

api_router.include_router(users.router)
api_router.include_router(incomes.router)
api_router.include_router(income_sources.router)
api_router.include_router(expenses.router)
api_router.include_router(net_worth.router)
