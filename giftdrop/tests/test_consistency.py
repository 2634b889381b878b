from __future__ import annotations

from giftdrop.application.use_cases.consistency.find_claim_anomalies import FindClaimAnomaliesUseCase
from giftdrop.application.use_cases.transfers.claim_unit import ClaimUnitUseCase


def test_half_finished_claim_is_reported(actions, users, cake, people, buy_unit) -> None:
    healthy = buy_unit(people["buyer"], cake)
    broken = buy_unit(people["buyer"], cake)
    ClaimUnitUseCase(actions=actions, users=users).execute(healthy.claim_code, people["friend"])
    # Receiver written but the transfer records never landed.
    assert actions.claim_receiver(broken.id, people["stranger"])

    anomalies = FindClaimAnomaliesUseCase(actions=actions).execute()

    assert [unit.id for unit in anomalies] == [broken.id]
    assert anomalies[0].receiver_user_id == people["stranger"]


def test_clean_ledger_has_no_anomalies(actions, cake, people, buy_unit) -> None:
    buy_unit(people["buyer"], cake)
    assert FindClaimAnomaliesUseCase(actions=actions).execute() == []
