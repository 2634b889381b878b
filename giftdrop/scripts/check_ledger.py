# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""One-off ledger consistency report; exits non-zero when anomalies exist."""

from __future__ import annotations

import argparse
import sys

from giftdrop.application.use_cases.consistency.find_claim_anomalies import (
    FindClaimAnomaliesUseCase,
)
from giftdrop.infrastructure.db import SessionLocal
from giftdrop.infrastructure.repositories.actions import SqlAlchemyActionRepository
from giftdrop.shared.logging import setup_logging


def main() -> int:
    parser = argparse.ArgumentParser(description="Report claimed units with missing links")
    parser.add_argument("--limit", type=int, default=1000, help="Maximum units to report")
    args = parser.parse_args()

    setup_logging()
    use_case = FindClaimAnomaliesUseCase(
        actions=SqlAlchemyActionRepository(SessionLocal), limit=args.limit
    )
    anomalies = use_case.execute()
    for unit in anomalies:
        print(
            f"unit={unit.id} gift={unit.gift_id} buyer={unit.buyer_user_id} "
            f"receiver={unit.receiver_user_id} send={unit.linked_send_action_id} "
            f"receive={unit.linked_receive_action_id}"
        )
    print(f"{len(anomalies)} anomalies")
    return 1 if anomalies else 0


if __name__ == "__main__":
    sys.exit(main())
