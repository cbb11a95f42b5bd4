"""
Store del carrito en el cliente.

- add(): no optimista, al terminar bien se vuelve a pedir el carrito completo
- update()/remove(): optimistas; si el backend falla se descarta la operación
  y se reconcilia con un fetch
- las operaciones optimistas en vuelo se guardan por id de item y se vuelven
  a aplicar sobre cualquier lista que llegue del backend, así un fetch de
  reconciliación no borra el update pendiente de otro item
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from client.api import ApiResult
from client.store import BaseStore
from models import CartItem, CartSnapshot, cart_count, cart_total

log = logging.getLogger("uvicorn.error")

QTY_ERROR = "Quantity must be at least 1"


@dataclass(eq=False)
class PendingOp:
    kind: str  # "set" | "remove"
    qty: int = 0
    # fetch_seq vigente cuando el backend confirmó; None = sin confirmar
    confirmed_seq: Optional[int] = None


def _apply_op(items: List[CartItem], item_id: int, op: PendingOp) -> List[CartItem]:
    if op.kind == "remove":
        return [it for it in items if it.id != item_id]
    return [it.model_copy(update={"qty": op.qty}) if it.id == item_id else it for it in items]


def _parse_items(data) -> List[CartItem]:
    raw = (data or {}).get("items") if isinstance(data, dict) else None
    items: List[CartItem] = []
    for entry in raw or []:
        try:
            items.append(CartItem.model_validate(entry))
        except PydanticValidationError:
            log.warning(f"[cart] item inválido ignorado: {entry!r}")
    return items


class CartStore(BaseStore):
    name = "cart"

    def __init__(self, api, probe=None) -> None:
        super().__init__(api, probe)
        self._items: List[CartItem] = []
        self._pending: Dict[int, PendingOp] = {}

    # ============ Lecturas (funciones puras de la lista) ============

    @property
    def items(self) -> List[CartItem]:
        return list(self._items)

    @property
    def count(self) -> int:
        return cart_count(self._items)

    @property
    def total_price(self) -> float:
        return cart_total(self._items)

    def snapshot(self) -> CartSnapshot:
        return CartSnapshot.from_items(self._items)

    def find(self, item_id: int) -> Optional[CartItem]:
        return next((it for it in self._items if it.id == item_id), None)

    # ============ Fetch ============

    async def _read(self) -> ApiResult:
        return await self.api.get_cart()

    def _apply_fetch(self, data, seq: int) -> None:
        if data is None:
            self._items = []
            return

        items = _parse_items(data)
        for item_id, op in list(self._pending.items()):
            # un fetch que salió después de la confirmación ya trae el cambio
            if op.confirmed_seq is not None and op.confirmed_seq < seq:
                del self._pending[item_id]
                continue
            items = _apply_op(items, item_id, op)
        self._items = items

    def reset(self) -> None:
        super().reset()
        self._items = []
        self._pending.clear()

    # ============ Mutaciones ============

    async def add(self, product_id: int, quantity: int = 1, color_id: int = 1) -> ApiResult:
        if quantity <= 0:
            return ApiResult(False, error=QTY_ERROR)
        result = await self._mutate(lambda: self.api.add_to_cart(product_id, quantity, color_id))
        if not result.success:
            return await self._reconcile(result)
        await self.fetch()
        return result

    async def update(self, item_id: int, quantity: int) -> ApiResult:
        """
        Cambia la cantidad de un item. quantity <= 0 se rechaza aquí mismo,
        sin red; para quitar un item se usa remove().
        """
        if quantity <= 0:
            return ApiResult(False, error=QTY_ERROR)
        op = PendingOp("set", quantity)
        return await self._optimistic(item_id, op, lambda: self.api.update_cart_item(item_id, quantity))

    async def remove(self, item_id: int) -> ApiResult:
        op = PendingOp("remove")
        return await self._optimistic(item_id, op, lambda: self.api.delete_cart_item(item_id))

    async def clear(self, user_id: Optional[str] = None, session_id: Optional[str] = None) -> ApiResult:
        """Vacía el carrito después del pago."""
        result = await self._mutate(lambda: self.api.clear_cart_after_payment(user_id, session_id))
        if result.success:
            self._items = []
            self._pending.clear()
            return result
        return await self._reconcile(result)

    async def _optimistic(self, item_id: int, op: PendingOp, send) -> ApiResult:
        self._pending[item_id] = op
        self._items = _apply_op(self._items, item_id, op)

        result = await self._mutate(send)
        if result.success:
            op.confirmed_seq = self._fetch_seq
            return result

        # falló: se descarta solo si nadie la reemplazó y se reconcilia
        if self._pending.get(item_id) is op:
            del self._pending[item_id]
        log.info(f"[cart] {op.kind} item={item_id} falló ({result.error}); reconciliando")
        return await self._reconcile(result)


# ============ Helpers para la UI ============

async def increment_item(store: CartStore, item_id: int) -> ApiResult:
    item = store.find(item_id)
    if item is None:
        return ApiResult(False, error="Item not in cart")
    return await store.update(item_id, item.qty + 1)


async def decrement_item(store: CartStore, item_id: int) -> ApiResult:
    """Bajar de 1 a 0 es quitar el item."""
    item = store.find(item_id)
    if item is None:
        return ApiResult(False, error="Item not in cart")
    if item.qty <= 1:
        return await store.remove(item_id)
    return await store.update(item_id, item.qty - 1)
