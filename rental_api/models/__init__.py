"""
Import all models from their respective modules.
"""

from rental_api.models.user import User
from rental_api.models.location import Location
from rental_api.models.vehicle import Vehicle, VehicleSpecification
from rental_api.models.booking import Booking, Payment
from rental_api.models.support import SupportTicket
from rental_api.models.maintenance import MaintenanceRecord
from rental_api.models.auth import Invitation, RevokedToken

# Export all models
__all__ = [
    "User",
    "Location",
    "Vehicle",
    "VehicleSpecification",
    "Booking",
    "Payment",
    "SupportTicket",
    "MaintenanceRecord",
    "Invitation",
    "RevokedToken",
]
