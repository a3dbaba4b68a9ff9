from .active_ride_store import ActiveRideStore
from .database import init_database
from .repositories import RideHistoryRepository

__all__ = ["ActiveRideStore", "RideHistoryRepository", "init_database"]
