import enum
import logging
from typing import Optional

from client.api import ApiResult, StorefrontAPI
from client.session import SessionProbe

log = logging.getLogger("uvicorn.error")


class StoreStatus(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    MUTATING = "mutating"
    ERROR = "error"


class BaseStore:
    """
    Base de los stores del cliente (carrito, wishlist).

    El estado se deriva de contadores para que varias operaciones
    concurrentes no se pisen:
    - LOADING mientras hay un fetch en vuelo
    - MUTATING mientras hay una mutación en vuelo
    - ERROR si la última lectura falló
    """

    name = "store"

    def __init__(self, api: StorefrontAPI, probe: Optional[SessionProbe] = None) -> None:
        self.api = api
        self.probe = probe or SessionProbe(api)
        self.error: Optional[str] = None
        self._read_failed = False
        self._loading = 0
        self._inflight = 0
        # cada fetch toma un número; solo el último puede escribir el estado
        self._fetch_seq = 0

    @property
    def status(self) -> StoreStatus:
        if self._loading:
            return StoreStatus.LOADING
        if self._inflight:
            return StoreStatus.MUTATING
        if self._read_failed:
            return StoreStatus.ERROR
        return StoreStatus.IDLE

    async def load(self) -> None:
        authenticated, _ = await self.probe.check()
        if authenticated:
            await self.fetch()
        else:
            self.reset()

    def reset(self) -> None:
        self.error = None
        self._read_failed = False
        self._fetch_seq += 1

    async def fetch(self) -> ApiResult:
        self._fetch_seq += 1
        seq = self._fetch_seq
        self._loading += 1
        try:
            result = await self._read()
        finally:
            self._loading -= 1

        if seq != self._fetch_seq:
            log.debug(f"[{self.name}] fetch #{seq} descartado (hay uno más nuevo)")
            return result

        if result.success:
            self.error = None
            self._read_failed = False
            self._apply_fetch(result.data, seq)
        else:
            log.warning(f"[{self.name}] fetch falló: {result.error}")
            self.error = result.error
            self._read_failed = True
            self._apply_fetch(None, seq)
        return result

    async def _mutate(self, send) -> ApiResult:
        self._inflight += 1
        try:
            result = await send()
            if result.success:
                self.error = None
            else:
                self.error = result.error
            return result
        finally:
            self._inflight -= 1

    async def _reconcile(self, result: ApiResult) -> ApiResult:
        """Mutación fallida: se vuelve a leer del backend, conservando el error."""
        self._inflight += 1
        try:
            await self.fetch()
        finally:
            self._inflight -= 1
        self.error = result.error
        return result

    # --- a implementar por cada store ---

    async def _read(self) -> ApiResult:
        raise NotImplementedError

    def _apply_fetch(self, data, seq: int) -> None:
        raise NotImplementedError
