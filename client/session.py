from typing import Optional, Tuple

from client.api import StorefrontAPI


class SessionProbe:
    """¿Hay sesión? Devuelve (authenticated, session_id). No es dueño de la sesión."""

    def __init__(self, api: StorefrontAPI) -> None:
        self.api = api

    async def check(self) -> Tuple[bool, Optional[str]]:
        data = await self.api.check_session()
        session_id = data.get("sessionId") or None
        return bool(data.get("hasUser")), session_id
