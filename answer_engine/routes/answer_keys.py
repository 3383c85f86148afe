"""Answer-key change notification webhook."""
from typing import Annotated

from fastapi import APIRouter, Depends

from answer_engine.engine.realtime import AnswerKeyChange, LocalChangeFeed
from answer_engine.models import AnswerKeyEventPayload
from answer_engine.services.session_service import get_change_hub
from answer_engine.utils import validate_id

router = APIRouter(prefix="/api/answer-keys", tags=["answer-keys"])


@router.post("/{test_id}/events")
def answer_key_event(
    test_id: str,
    payload: AnswerKeyEventPayload,
    hub: Annotated[LocalChangeFeed, Depends(get_change_hub)],
) -> dict[str, object]:
    """Fan a data-service change notification out to subscribed sessions."""
    test_id = validate_id("testId", test_id)
    change = AnswerKeyChange(
        test_id=test_id,
        change_type=payload.type,
        record=payload.record or payload.old_record,
    )
    delivered = hub.publish(change)
    return {"status": "delivered" if delivered else "no_subscribers", "subscribers": delivered}
