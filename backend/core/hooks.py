# core/hooks.py
from __future__ import annotations
import logging
from typing import Callable, List, Optional

Listener = Callable[[str, Optional[str]], None]

log = logging.getLogger("uvicorn.error")

class MutationHooks:
    """
    Post-write notifications. Mutation actions call `mutation_committed`
    after a successful statement; views and routers register listeners
    (e.g. to mark listing pages stale). Listener failures are logged and
    never reach the action that triggered them.
    """

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def on_mutation_committed(self, listener: Listener) -> Listener:
        if listener not in self._listeners:
            self._listeners.append(listener)
        return listener

    def remove(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def mutation_committed(self, entity: str, record_id: Optional[str] = None) -> None:
        for listener in list(self._listeners):
            try:
                listener(entity, record_id)
            except Exception:
                log.exception("Mutation listener failed for %s %s", entity, record_id)

registry = MutationHooks()

on_mutation_committed = registry.on_mutation_committed
mutation_committed = registry.mutation_committed
