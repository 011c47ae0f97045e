"""
V1 API router aggregator: wires all endpoint modules together.
"""

from fastapi import APIRouter

from hrportal.api.v1.endpoints import (attendance, auth, dashboard, employees,
                                       leaves, payroll, settings)

api_router = APIRouter()

# Auth (login, refresh, logout, me)
api_router.include_router(auth.router)

# Directory and own profile
api_router.include_router(employees.router)

# Leave workflow and balances
api_router.include_router(leaves.router)

# Check-in / check-out, HR corrections
api_router.include_router(attendance.router)

# Payroll, dashboard, HR policy
api_router.include_router(payroll.router)
api_router.include_router(dashboard.router)
api_router.include_router(settings.router)
