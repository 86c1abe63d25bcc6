"""Post-commit lifecycle notifications.

Services call ``notifier.notify`` after a write has been committed. Hooks are plain
callables ``(event, entity, actor)``; the default one writes a structlog line. A
hook that raises is skipped, so a lost log line never changes a response.
"""
import enum
from typing import Any, Callable, List, Optional

import structlog

from app.core.config import settings
from app.models.invoice import Invoice
from app.models.product import Product
from app.models.user import User

logger = structlog.get_logger("app.changes")


class ChangeEvent(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    RESTORED = "restored"
    FORCE_DELETED = "force_deleted"


ChangeHook = Callable[[ChangeEvent, Any, Optional[User]], None]

_VERBS = {
    ChangeEvent.CREATED: "has been created",
    ChangeEvent.UPDATED: "has been updated",
    ChangeEvent.DELETED: "has been deleted",
    ChangeEvent.RESTORED: "has been restored",
    ChangeEvent.FORCE_DELETED: "has been deleted permanently",
}


def describe_change(event: ChangeEvent, entity: Any) -> str:
    if isinstance(entity, User):
        if event == ChangeEvent.RESTORED:
            return f"User ({entity.email}) has been restored."
        if event == ChangeEvent.FORCE_DELETED:
            return f"User ({entity.email}) has been permanently deleted."
        return f"User({entity.email}) {_VERBS[event]}"
    if isinstance(entity, Product):
        return f"Product({entity.name}: {entity.unit_price} $) {_VERBS[event]}"
    if isinstance(entity, Invoice):
        return f"Invoice(seller_id: {entity.seller_id}, client_id: {entity.client_id}) {_VERBS[event]}"
    return f"{type(entity).__name__} {_VERBS[event]}"


def entity_name(entity: Any) -> str:
    return type(entity).__name__.lower()


def log_change(event: ChangeEvent, entity: Any, actor: Optional[User] = None) -> None:
    logger.info(
        f"{entity_name(entity)}_{event.value}",
        entity=entity_name(entity),
        entity_id=str(getattr(entity, "id", None)),
        actor_id=str(actor.id) if actor is not None else None,
        summary=describe_change(event, entity),
    )


class ChangeNotifier:
    def __init__(self, hooks: Optional[List[ChangeHook]] = None, enabled: bool = True):
        self.hooks: List[ChangeHook] = list(hooks or [])
        self.enabled = enabled

    def register(self, hook: ChangeHook) -> ChangeHook:
        if hook not in self.hooks:
            self.hooks.append(hook)
        return hook

    def unregister(self, hook: ChangeHook) -> None:
        if hook in self.hooks:
            self.hooks.remove(hook)

    def notify(self, event: ChangeEvent, entity: Any, actor: Optional[User] = None) -> None:
        if not self.enabled:
            return
        for hook in list(self.hooks):
            try:
                hook(event, entity, actor)
            except Exception:
                logger.exception(
                    "change_hook_failed",
                    hook=getattr(hook, "__name__", repr(hook)),
                    entity=entity_name(entity),
                    change=event.value,
                )


notifier = ChangeNotifier(hooks=[log_change], enabled=settings.CHANGE_LOG_ENABLED)
