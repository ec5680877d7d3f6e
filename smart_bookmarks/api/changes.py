import hmac
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, ValidationError

from smart_bookmarks.dependencies import get_registry
from smart_bookmarks.models.change import ChangeEvent
from smart_bookmarks.services.session import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/changes", tags=["changes"])

BOOKMARKS_TABLE = "bookmarks"


class ChangeReceiptSchema(BaseModel):
    """Acknowledgement of a change notification.

    Attributes:
        delivered: Number of sessions the change was routed to
    """

    model_config = ConfigDict(frozen=True)

    delivered: int


def verify_webhook_secret(
    request: Request,
    x_webhook_secret: Annotated[str | None, Header()] = None,
) -> None:
    expected: str = request.app.state.webhook_secret
    if not expected or not x_webhook_secret:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing webhook secret",
        )
    if not hmac.compare_digest(expected, x_webhook_secret):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook secret",
        )


@router.post(
    "",
    response_model=ChangeReceiptSchema,
    status_code=status.HTTP_202_ACCEPTED,
    dependencies=[Depends(verify_webhook_secret)],
)
async def receive_change(
    payload: Annotated[dict[str, Any], Body()],
    registry: Annotated[SessionRegistry, Depends(get_registry)],
) -> ChangeReceiptSchema:
    """Receive a row change from the database webhook.

    The change is queued on the channel of every session it may concern and
    applied there in arrival order. Idle sessions are evicted before
    delivery.

    Raises:
        HTTPException: If the payload is not a bookmarks change
    """
    table = payload.get("table")
    if table is not None and table != BOOKMARKS_TABLE:
        logger.debug("change_ignored_table", extra={"table": table})
        return ChangeReceiptSchema(delivered=0)

    try:
        event = ChangeEvent.from_webhook(payload)
    except (ValueError, ValidationError) as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid change payload: {str(e)}",
        )
    await registry.evict_idle()
    return ChangeReceiptSchema(delivered=registry.publish(event))
