from __future__ import annotations

import asyncio

import pytest

from giftdrop.application.interfaces import AvatarSnapshot
from giftdrop.application.use_cases.users.refresh_avatars import RefreshAvatarsUseCase
from giftdrop.application.use_cases.users.update_settings import UpdateSettingsUseCase
from giftdrop.application.use_cases.users.upsert_user import UpsertUserUseCase
from giftdrop.domain.ledger import InvalidArgumentError, NotFoundError, UserProfile


def test_upsert_derives_locale_and_keeps_choice(users) -> None:
    upsert = UpsertUserUseCase(users=users)

    created = upsert.execute(UserProfile(id=55, first_name="Ivan", language_code="ru-RU"))
    assert created.locale == "ru"
    assert created.gifts_received == 0

    UpdateSettingsUseCase(users=users).execute(55, locale="en")
    renamed = upsert.execute(
        UserProfile(id=55, first_name="Ivan", username="ivan", language_code="ru")
    )
    assert renamed.username == "ivan"
    assert renamed.locale == "en"


def test_upsert_rejects_non_positive_id(users) -> None:
    with pytest.raises(InvalidArgumentError):
        UpsertUserUseCase(users=users).execute(UserProfile(id=0, first_name="Nobody"))


def test_settings_validation(users, people) -> None:
    settings = UpdateSettingsUseCase(users=users)

    with pytest.raises(InvalidArgumentError):
        settings.execute(people["buyer"])
    with pytest.raises(InvalidArgumentError):
        settings.execute(people["buyer"], locale="de")
    with pytest.raises(InvalidArgumentError):
        settings.execute(people["buyer"], theme="sepia")
    with pytest.raises(NotFoundError):
        settings.execute(404, theme="night")

    user = settings.execute(people["buyer"], theme="night")
    assert user.theme == "night"
    assert user.locale == "en"


class FakeAvatarGateway:
    def __init__(self, snapshots: dict[int, AvatarSnapshot | Exception | None]) -> None:
        self.snapshots = snapshots
        self.calls: list[tuple[int, str | None]] = []

    async def fetch_avatar(self, user_id: int, known_file_id: str | None) -> AvatarSnapshot | None:
        self.calls.append((user_id, known_file_id))
        snapshot = self.snapshots.get(user_id)
        if isinstance(snapshot, Exception):
            raise snapshot
        return snapshot


def test_refresh_avatars_stores_new_photos(users, people) -> None:
    gateway = FakeAvatarGateway(
        {
            people["buyer"]: AvatarSnapshot(file_id="f-1", photo=b"jpeg-1"),
            people["friend"]: None,
            people["stranger"]: RuntimeError("telegram down"),
        }
    )
    refresh = RefreshAvatarsUseCase(users=users, gateway=gateway, max_age=60)

    assert asyncio.run(refresh.execute()) == 1
    assert users.get_photo(people["buyer"]) == b"jpeg-1"
    assert users.get(people["buyer"]).has_photo is True
    assert users.get_photo(people["friend"]) is None
    assert sorted(user_id for user_id, _ in gateway.calls) == sorted(people.values())

    # Everyone was just checked, so a second round has nothing to do.
    assert asyncio.run(refresh.execute()) == 0
    assert len(gateway.calls) == 3


def test_refresh_avatars_clears_removed_photo(users, people) -> None:
    users.store_avatar(people["buyer"], file_id="f-old", photo=b"old")
    gateway = FakeAvatarGateway({people["buyer"]: None})
    refresh = RefreshAvatarsUseCase(users=users, gateway=gateway, max_age=0.001)

    asyncio.run(refresh.execute())

    assert (people["buyer"], "f-old") in gateway.calls
    assert users.get_photo(people["buyer"]) is None
