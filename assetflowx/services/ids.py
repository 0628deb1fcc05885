"""Identifier and mock-hash generation.

Formats follow the ledger's existing records:

  ord_1760861700000_k3j9x0a1b        order
  cred_sbt_1760861700000_q8w2e1      credential (type prefix: openbadge, vc, erc1155, sbt)
"""

from __future__ import annotations

import datetime
import random
import string

from assetflowx.core.clock import epoch_ms

_BASE36 = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def random_base36(rng: random.Random, length: int) -> str:
    return "".join(rng.choice(_BASE36) for _ in range(length))


def new_order_id(now: datetime.datetime, rng: random.Random) -> str:
    return f"ord_{epoch_ms(now)}_{random_base36(rng, 9)}"


def credential_prefix(cred_type: str) -> str:
    # OPEN_BADGE -> openbadge, VC -> vc
    return cred_type.lower().replace("_", "", 1)


def new_credential_id(cred_type: str, now: datetime.datetime, rng: random.Random) -> str:
    return f"cred_{credential_prefix(cred_type)}_{epoch_ms(now)}_{random_base36(rng, 6)}"
