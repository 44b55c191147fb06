from fastapi import APIRouter

from seatdesk.api.employees import employees_router
from seatdesk.api.invoices import invoices_router
from seatdesk.api.projects import projects_router
from seatdesk.api.seats import seats_router
from seatdesk.api.tickets import tickets_router

api_router = APIRouter()
api_router.include_router(projects_router)
api_router.include_router(tickets_router)
api_router.include_router(seats_router)
api_router.include_router(invoices_router)
api_router.include_router(employees_router)
