from __future__ import annotations

from decimal import Decimal

import pytest

from giftdrop.application.use_cases.queries.catalog import ListCatalogUseCase
from giftdrop.application.use_cases.queries.leaderboard import (
    GetLeaderboardUseCase,
    GetUserPhotoUseCase,
    GetUserProfileUseCase,
    SearchUsersUseCase,
)
from giftdrop.application.use_cases.queries.listings import (
    ListActivityUseCase,
    ListGiftHistoryUseCase,
    ListInventoryUseCase,
    ListReceivedGiftsUseCase,
)
from giftdrop.application.use_cases.transfers.claim_unit import ClaimUnitUseCase
from giftdrop.application.use_cases.transfers.resolve_inline_query import ResolveInlineQueryUseCase
from giftdrop.domain.ledger import (
    ActionKind,
    GiftDefinition,
    GiftNotFoundError,
    InvalidArgumentError,
    NotFoundError,
    PurchaseUnit,
    ReceiveAction,
    SendAction,
)


def test_catalog_follows_display_order(gifts) -> None:
    for gift_id, order in ((2, 2), (1, 1), (4, 3)):
        gifts.save(
            GiftDefinition(
                id=gift_id,
                display_order=order,
                name={"en": f"gift {gift_id}"},
                unit_price=Decimal("1"),
                settlement_asset="TON",
                total_supply=10,
            )
        )

    catalog = ListCatalogUseCase(gifts=gifts).execute()

    assert [gift.id for gift in catalog] == [1, 2, 4]


def test_inventory_lists_only_deliverable_units(actions, users, cake, people, buy_unit) -> None:
    kept = buy_unit(people["buyer"], cake)
    handed = buy_unit(people["buyer"], cake)
    given = buy_unit(people["buyer"], cake)
    actions.set_delivery_ref(handed.id, "inline-1")
    ClaimUnitUseCase(actions=actions, users=users).execute(given.claim_code, people["friend"])

    inventory = ListInventoryUseCase(actions=actions, users=users, page_size=24)

    assert [unit.id for unit in inventory.execute(people["buyer"])] == [kept.id]
    assert inventory.execute(people["buyer"], offset=-5) == inventory.execute(people["buyer"])


def test_received_gifts_carry_sender(actions, users, cake, people, buy_unit) -> None:
    unit = buy_unit(people["buyer"], cake)
    ClaimUnitUseCase(actions=actions, users=users).execute(unit.claim_code, people["friend"])

    (view,) = ListReceivedGiftsUseCase(actions=actions, users=users, page_size=24).execute(
        people["friend"]
    )

    assert isinstance(view.action, ReceiveAction)
    assert view.user.id == people["friend"]
    assert view.sender.first_name == "Alice"
    assert view.receiver is None


def test_activity_is_newest_first(actions, users, cake, people, buy_unit) -> None:
    unit = buy_unit(people["buyer"], cake)
    ClaimUnitUseCase(actions=actions, users=users).execute(unit.claim_code, people["friend"])

    views = ListActivityUseCase(actions=actions, users=users, page_size=24).execute(
        people["buyer"]
    )

    assert [view.action.kind for view in views] == [ActionKind.SEND, ActionKind.PURCHASE]
    send = views[0]
    assert isinstance(send.action, SendAction)
    assert send.receiver.id == people["friend"]
    assert isinstance(views[1].action, PurchaseUnit)
    assert views[1].receiver.id == people["friend"]


def test_gift_history_pages_and_rejects_unknown_gift(gifts, actions, users, cake, people, buy_unit) -> None:
    for _ in range(3):
        buy_unit(people["buyer"], cake)
    history = ListGiftHistoryUseCase(gifts=gifts, actions=actions, users=users, page_size=2)

    assert len(history.execute(cake.id)) == 2
    assert len(history.execute(cake.id, offset=2)) == 1
    with pytest.raises(GiftNotFoundError):
        history.execute(999)


def test_profile_position_counts_strictly_higher_scores(actions, users, cake, people, buy_unit) -> None:
    claim = ClaimUnitUseCase(actions=actions, users=users)
    for receiver in (people["friend"], people["stranger"]):
        claim.execute(buy_unit(people["buyer"], cake).claim_code, receiver)
    claim.execute(buy_unit(people["stranger"], cake).claim_code, people["friend"])

    top = GetLeaderboardUseCase(users=users, size=2).execute()
    assert [user.id for user in top] == [people["friend"], people["stranger"]]

    profile = GetUserProfileUseCase(users=users)
    assert profile.execute(people["friend"]).position == 0
    assert profile.execute(people["stranger"]).position == 1
    assert profile.execute(people["buyer"]).position == 2
    with pytest.raises(NotFoundError):
        profile.execute(123)


def test_search_validates_query(users, people) -> None:
    search = SearchUsersUseCase(users=users, limit=100)

    assert [user.id for user in search.execute("@carol")] == [people["stranger"]]
    with pytest.raises(InvalidArgumentError):
        search.execute("   ")
    with pytest.raises(InvalidArgumentError):
        search.execute("x" * 65)


def test_photo_lookup(users, people) -> None:
    photos = GetUserPhotoUseCase(users=users)
    with pytest.raises(NotFoundError):
        photos.execute(people["buyer"])

    users.store_avatar(people["buyer"], file_id="file-1", photo=b"\xff\xd8jpeg")
    assert photos.execute(people["buyer"]) == b"\xff\xd8jpeg"


def test_inline_query_offers_only_owned_deliverable_units(gifts, actions, cake, people, buy_unit) -> None:
    resolve = ResolveInlineQueryUseCase(gifts=gifts, actions=actions, page_size=24)
    mine = buy_unit(people["buyer"], cake)
    theirs = buy_unit(people["friend"], cake)

    listed = resolve.execute(people["buyer"], "")
    assert [offer.unit.id for offer in listed] == [mine.id]
    assert listed[0].gift.id == cake.id

    assert [offer.unit.id for offer in resolve.execute(people["buyer"], mine.claim_code)] == [mine.id]
    assert resolve.execute(people["buyer"], theirs.claim_code) == []
    assert resolve.execute(people["buyer"], "not a code") == []

    actions.set_delivery_ref(mine.id, "inline-2")
    assert resolve.execute(people["buyer"], mine.claim_code) == []
