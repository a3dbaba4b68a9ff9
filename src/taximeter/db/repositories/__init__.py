from .ride_history_repository import RideHistoryRepository

__all__ = ["RideHistoryRepository"]
