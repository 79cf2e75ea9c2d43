from typing import Any, Dict, Optional, Protocol


class Notifier(Protocol):
    def notify(self, user_id: str, type: str, title: str, message: str, link: Optional[str] = None, details: Optional[Dict[str, Any]] = None, priority: str = "medium") -> None:
        ...
