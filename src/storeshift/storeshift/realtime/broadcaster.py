from __future__ import annotations

from typing import Any, Dict, Optional

from ..core.enums import DataType
from .registry import ConnectionRegistry

DATA_UPDATE = "data-update"


def envelope(message_type: str, payload: Any) -> Dict[str, Any]:
    return {"type": message_type, "payload": payload}


class Broadcaster:
    """Wrap domain updates in the realtime envelope and hand them to the registry.

    With `user_id` the message goes to that user's connections only,
    otherwise to every connected client.
    """

    def __init__(self, registry: ConnectionRegistry):
        self._registry = registry

    def broadcast(self, message_type: str, payload: Any, user_id: Optional[str] = None) -> int:
        message = envelope(message_type, payload)
        if user_id:
            return self._registry.send_to_user(user_id, message)
        return self._registry.send_to_all(message)

    def data_update(self, data_type: DataType, data: Any, user_id: Optional[str] = None) -> int:
        return self.broadcast(DATA_UPDATE, {"dataType": data_type.value, "data": data}, user_id)

    def attendance_update(self, attendance: Dict[str, Any], user_id: Optional[str] = None) -> int:
        return self.data_update(DataType.ATTENDANCE, attendance, user_id)

    def late_approval_update(self, approval: Dict[str, Any]) -> int:
        return self.data_update(DataType.LATE_APPROVAL, approval)

    def late_permission_update(self, permission: Dict[str, Any]) -> int:
        return self.data_update(DataType.LATE_PERMISSION, permission)

    def notification_update(self, notification: Dict[str, Any], user_id: Optional[str] = None) -> int:
        return self.data_update(DataType.NOTIFICATION, notification, user_id)
