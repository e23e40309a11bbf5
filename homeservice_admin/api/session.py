# homeservice_admin/api/session.py
from typing import Dict, Optional

class AdminSession:
    """Holds the admin bearer token used by the API client"""

    def __init__(self, token: Optional[str] = None):
        self.token = token or None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def auth_headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def clear(self):
        """Forget the token after the server rejected it"""
        self.token = None
