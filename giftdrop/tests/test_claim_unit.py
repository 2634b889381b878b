from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from giftdrop.application.use_cases.transfers.claim_unit import ClaimUnitUseCase
from giftdrop.domain.ledger import (
    ActionKind,
    ClaimAccepted,
    ClaimError,
    ClaimRejected,
    NotificationEvent,
    ReceiveAction,
    SendAction,
    UnitState,
    UserProfile,
)
from giftdrop.infrastructure.repositories.actions import SqlAlchemyActionRepository


@pytest.fixture()
def claim(actions, users) -> ClaimUnitUseCase:
    return ClaimUnitUseCase(actions=actions, users=users)


def test_claim_transfers_unit_and_links_records(claim, actions, users, cake, people, buy_unit) -> None:
    unit = buy_unit(people["buyer"], cake)
    actions.set_delivery_ref(unit.id, "inline-msg-1")

    result = claim.execute(unit.claim_code, people["friend"])

    assert isinstance(result, ClaimAccepted)
    assert result.replay is False
    assert result.unit.state is UnitState.CLAIMED
    assert result.unit.receiver_user_id == people["friend"]

    receive, send = result.receive, result.send
    assert isinstance(receive, ReceiveAction)
    assert isinstance(send, SendAction)
    assert receive.sender_user_id == people["buyer"]
    assert receive.linked_purchase_action_id == unit.id
    assert receive.linked_send_action_id == send.id
    assert send.receiver_user_id == people["friend"]
    assert send.linked_receive_action_id == receive.id

    stored = actions.get(unit.id)
    assert stored.linked_send_action_id == send.id
    assert stored.linked_receive_action_id == receive.id
    assert users.get(people["friend"]).gifts_received == 1

    (intent,) = result.notifications
    assert intent.user_id == people["buyer"]
    assert intent.event is NotificationEvent.GIFT_RECEIVED
    assert intent.payload["receiver_user_id"] == people["friend"]
    assert intent.payload["delivery_message_ref"] == "inline-msg-1"


def test_buyer_cannot_claim_own_unit(claim, actions, cake, people, buy_unit) -> None:
    unit = buy_unit(people["buyer"], cake)

    result = claim.execute(unit.claim_code, people["buyer"])

    assert result == ClaimRejected(ClaimError.GIFT_OWN)
    assert result.code == "GiftOwn"
    assert actions.get(unit.id).state is UnitState.HELD


def test_unknown_code_is_not_found(claim, people) -> None:
    result = claim.execute("X" * 16, people["friend"])
    assert result == ClaimRejected(ClaimError.GIFT_NOT_FOUND)


def test_second_claimant_sees_already_received(claim, users, cake, people, buy_unit) -> None:
    unit = buy_unit(people["buyer"], cake)
    assert isinstance(claim.execute(unit.claim_code, people["friend"]), ClaimAccepted)

    result = claim.execute(unit.claim_code, people["stranger"])

    assert result == ClaimRejected(ClaimError.GIFT_ALREADY_RECEIVED)
    assert users.get(people["stranger"]).gifts_received == 0


def test_repeated_claim_by_receiver_is_a_replay(claim, actions, users, cake, people, buy_unit) -> None:
    unit = buy_unit(people["buyer"], cake)
    first = claim.execute(unit.claim_code, people["friend"])

    again = claim.execute(unit.claim_code, people["friend"])

    assert isinstance(again, ClaimAccepted)
    assert again.replay is True
    assert again.notifications == ()
    assert again.receive.id == first.receive.id
    assert again.send.id == first.send.id
    assert users.get(people["friend"]).gifts_received == 1
    received = actions.list_by_user(people["friend"], [ActionKind.RECEIVE], offset=0, limit=10)
    assert len(received) == 1


def test_concurrent_claims_produce_one_receive(claim, actions, users, cake, people, buy_unit) -> None:
    unit = buy_unit(people["buyer"], cake)
    claimants = list(range(7000, 7012))
    for claimant in claimants:
        users.upsert(UserProfile(id=claimant, first_name=f"user{claimant}"))

    with ThreadPoolExecutor(max_workers=6) as pool:
        results = list(pool.map(lambda uid: claim.execute(unit.claim_code, uid), claimants))

    accepted = [result for result in results if isinstance(result, ClaimAccepted)]
    rejected = [result for result in results if isinstance(result, ClaimRejected)]
    assert len(accepted) == 1
    assert all(result.error is ClaimError.GIFT_ALREADY_RECEIVED for result in rejected)

    winner = accepted[0].unit.receiver_user_id
    assert actions.get(unit.id).receiver_user_id == winner
    assert len(actions.list_by_gift(cake.id, [ActionKind.RECEIVE], offset=0, limit=50)) == 1
    assert sum(users.get(uid).gifts_received for uid in claimants) == 1


class _RivalFirstRepository(SqlAlchemyActionRepository):
    """Lets ``rival`` win between the advisory read and the conditional write."""

    def __init__(self, session_factory, rival: int) -> None:
        super().__init__(session_factory)
        self.rival = rival

    def claim_receiver(self, unit_id: int, claimant_user_id: int) -> bool:
        assert super().claim_receiver(unit_id, self.rival)
        return super().claim_receiver(unit_id, claimant_user_id)


def test_lost_write_is_reported_as_already_received(session_factory, users, cake, people, buy_unit) -> None:
    unit = buy_unit(people["buyer"], cake)
    racing = _RivalFirstRepository(session_factory, rival=people["stranger"])
    use_case = ClaimUnitUseCase(actions=racing, users=users)

    result = use_case.execute(unit.claim_code, people["friend"])

    assert result == ClaimRejected(ClaimError.GIFT_ALREADY_RECEIVED)
    assert racing.get(unit.id).receiver_user_id == people["stranger"]


def test_lost_write_to_self_is_reported_as_replay(session_factory, users, cake, people, buy_unit) -> None:
    unit = buy_unit(people["buyer"], cake)
    racing = _RivalFirstRepository(session_factory, rival=people["friend"])
    use_case = ClaimUnitUseCase(actions=racing, users=users)

    result = use_case.execute(unit.claim_code, people["friend"])

    assert isinstance(result, ClaimAccepted)
    assert result.replay is True


def test_buyer_gets_gift_own_even_after_transfer(claim, cake, people, buy_unit) -> None:
    unit = buy_unit(people["buyer"], cake)
    assert isinstance(claim.execute(unit.claim_code, people["friend"]), ClaimAccepted)

    assert claim.execute(unit.claim_code, people["buyer"]) == ClaimRejected(ClaimError.GIFT_OWN)
