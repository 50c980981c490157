"""Infrastructure adapters for WLAN auto-assignment.

These adapters implement the port interfaces defined in the domain layer,
connecting the workflows to the wireless controller's REST API.
"""

from .campus_controller import CampusControllerAdapter
from .field_mapper import ControllerFieldMapper

__all__ = [
    "CampusControllerAdapter",
    "ControllerFieldMapper",
]
