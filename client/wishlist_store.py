import logging
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from client.api import ApiResult
from client.store import BaseStore
from models import WishlistItem

log = logging.getLogger("uvicorn.error")


class WishlistStore(BaseStore):
    """
    Wishlist del usuario. Sin parches optimistas: add/remove vuelven a
    pedir la lista cuando el backend responde, confirme o no.
    """

    name = "wishlist"

    def __init__(self, api, probe=None) -> None:
        super().__init__(api, probe)
        self._items: List[WishlistItem] = []

    @property
    def items(self) -> List[WishlistItem]:
        return list(self._items)

    @property
    def count(self) -> int:
        return len(self._items)

    def is_wishlisted(self, product_id: int) -> bool:
        return any(it.product.id == product_id for it in self._items)

    def wishlist_item_id(self, product_id: int) -> Optional[int]:
        for it in self._items:
            if it.product.id == product_id:
                return it.id
        return None

    def clear_local(self) -> None:
        """Al cerrar sesión: vacía la lista sin llamar al backend."""
        self.reset()

    def reset(self) -> None:
        super().reset()
        self._items = []

    # ============ Fetch ============

    async def _read(self) -> ApiResult:
        return await self.api.get_wishlist()

    def _apply_fetch(self, data, seq: int) -> None:
        items: List[WishlistItem] = []
        raw = data.get("items") if isinstance(data, dict) else None
        for entry in raw or []:
            try:
                items.append(WishlistItem.model_validate(entry))
            except PydanticValidationError:
                log.warning(f"[wishlist] item inválido ignorado: {entry!r}")
        self._items = items

    # ============ Mutaciones ============

    async def add(self, product_id: int) -> ApiResult:
        return await self._settle(await self._mutate(lambda: self.api.add_to_wishlist(product_id)))

    async def remove(self, wishlist_item_id: int) -> ApiResult:
        return await self._settle(await self._mutate(lambda: self.api.remove_from_wishlist(wishlist_item_id)))

    async def _settle(self, result: ApiResult) -> ApiResult:
        if result.success:
            await self.fetch()
            return result
        log.info(f"[wishlist] mutación falló ({result.error}); reconciliando")
        return await self._reconcile(result)

    async def toggle(self, product_id: int) -> ApiResult:
        item_id = self.wishlist_item_id(product_id)
        if item_id is None:
            return await self.add(product_id)
        return await self.remove(item_id)
