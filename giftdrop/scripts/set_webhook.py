# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Register ``SERVER_URL/webhook`` with the Bot API."""

from __future__ import annotations

from giftdrop.infrastructure.container import container
from giftdrop.shared.logging import setup_logging
from giftdrop.shared.utils.asyncio_utils import run_async


def main() -> None:
    setup_logging()
    run_async(container.gateway.set_webhook())


if __name__ == "__main__":
    main()
