from .pipeline import RoomEQResult, RoomEQSession, RoomScenario, run_room_eq

__all__ = ["RoomEQResult", "RoomEQSession", "RoomScenario", "run_room_eq"]
