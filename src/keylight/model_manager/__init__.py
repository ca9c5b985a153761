"""Settings management: observable pydantic model service and JSON persistence."""

from keylight.model_manager.observer import ObserverManager
from keylight.model_manager.persistence import PydanticPersistence
from keylight.model_manager.protocols import ModelEvent, ModelObserver
from keylight.model_manager.service import ModelManagerService

__all__ = [
    "ModelEvent",
    "ModelManagerService",
    "ModelObserver",
    "ObserverManager",
    "PydanticPersistence",
]
