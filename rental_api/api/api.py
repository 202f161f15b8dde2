from fastapi import APIRouter

from rental_api.api.endpoints import (
    auth,
    bookings,
    health,
    invitations,
    locations,
    maintenance,
    payments,
    support_tickets,
    users,
    vehicle_specs,
    vehicles,
)

# Create API router
api_router = APIRouter()

# Include endpoint routers with appropriate prefixes and tags
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(invitations.router, prefix="/invitations", tags=["invitations"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(locations.router, prefix="/locations", tags=["locations"])
api_router.include_router(vehicle_specs.router, prefix="/vehicle-specifications", tags=["vehicle specifications"])
api_router.include_router(vehicles.router, prefix="/vehicles", tags=["vehicles"])
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
api_router.include_router(payments.router, prefix="/payments", tags=["payments"])
api_router.include_router(support_tickets.router, prefix="/support-tickets", tags=["support"])
api_router.include_router(maintenance.router, prefix="/maintenance", tags=["maintenance"])
