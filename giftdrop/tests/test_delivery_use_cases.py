from __future__ import annotations

from datetime import UTC, datetime

from giftdrop.application.use_cases.invoices.record_delivery import RecordDeliveryUseCase
from giftdrop.application.use_cases.transfers.mark_handed import (
    MarkHandedToRecipientMessageUseCase,
)


def test_record_delivery_stamps_held_unit_once(actions, cake, people, buy_unit) -> None:
    record = RecordDeliveryUseCase(actions=actions)
    unit = buy_unit(people["buyer"], cake)

    assert record.execute(unit.id, "") is None
    stamped = record.execute(unit.id, "msg-1")
    assert stamped is not None and stamped.delivery_message_ref == "msg-1"
    assert record.execute(unit.id, "msg-2") is None


def test_record_delivery_skips_claimed_unit(actions, cake, people, buy_unit) -> None:
    record = RecordDeliveryUseCase(actions=actions)
    unit = buy_unit(people["buyer"], cake)
    assert actions.claim_receiver(unit.id, people["friend"])
    actions.complete_transfer(unit, people["friend"], datetime.now(UTC))

    assert record.execute(unit.id, "msg-1") is None
    assert actions.find_unit_by_code(unit.claim_code).delivery_message_ref is None


def test_mark_handed_parses_gateway_result_id(actions, cake, people, buy_unit) -> None:
    mark = MarkHandedToRecipientMessageUseCase(record_delivery=RecordDeliveryUseCase(actions=actions))
    unit = buy_unit(people["buyer"], cake)

    assert mark.execute("not-a-number", "inline-1") is None
    assert mark.execute(str(unit.id), None) is None
    assert mark.execute(str(unit.id), "inline-1").delivery_message_ref == "inline-1"
    assert mark.execute(unit.id, "inline-2") is None
