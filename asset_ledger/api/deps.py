from __future__ import annotations

from typing import Annotated

from fastapi import Header


def get_actor_id(
    x_actor_id: Annotated[str | None, Header(alias="X-Actor-Id")] = None,
) -> str | None:
    if x_actor_id is None or not x_actor_id.strip():
        return None
    return x_actor_id.strip()
