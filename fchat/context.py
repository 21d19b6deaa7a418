from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fchat._logging import get_component_logger
from fchat.cookies import ALT_IDENTITY_COOKIE, IDENTITY_COOKIE, CookieStore
from fchat.extract import DEFAULT_REGION, SessionParams, extract
from fchat.types import DeadSessionError, NoIdentityError

logger = get_component_logger("login")


def generate_client_id() -> str:
    # uniform 31-bit value, hex encoded
    return format(random.getrandbits(31), "x")


@dataclass(slots=True, eq=False)
class Context:
    """
    Shared state for one logged-in session.

    Created once by ``build_context`` and then shared by every capability.
    The field set is fixed; values are mutated in place. ``fb_dtsg`` is
    written only by the token refresh task and by capabilities.
    """

    user_id: str
    client_id: str
    cookies: CookieStore
    settings: Dict[str, Any]
    i_user_id: Optional[str] = None
    logged_in: bool = True
    access_token: str = "NONE"
    client_mutation_id: int = 0
    mqtt_client: Optional[Any] = None
    last_seq_id: Optional[str] = None
    sync_token: Optional[str] = None
    mqtt_endpoint: Optional[str] = None
    region: str = DEFAULT_REGION
    first_listen: bool = True
    fb_dtsg: Optional[str] = None
    ws_req_number: int = 0
    ws_task_number: int = 0

    def next_mutation_id(self) -> int:
        self.client_mutation_id += 1
        return self.client_mutation_id


def build_context(
    settings: Dict[str, Any],
    document: str,
    cookies: CookieStore,
    params: Optional[SessionParams] = None,
) -> Context:
    """Combine identity, extracted parameters and settings into a Context.

    Raises:
        DeadSessionError: the document carries the checkpoint marker; checked
            first since a blocked account can still hold identity cookies
        NoIdentityError: neither identity cookie is present
    """
    params = params if params is not None else extract(document)

    if params.checkpointed:
        logger.error("app_state_dead")
        raise DeadSessionError("App state is dead, please replace it with a new one")

    user_cookie = cookies.find(IDENTITY_COOKIE)
    alt_cookie = cookies.find(ALT_IDENTITY_COOKIE)
    if user_cookie is None and alt_cookie is None:
        logger.error("no_identity_cookie")
        raise NoIdentityError(
            "No cookies found for the user, please check your login information again"
        )

    user_id = (alt_cookie or user_cookie).value
    logger.info("logged_in", user_id=user_id)
    if params.endpoint:
        logger.info("server_region", region=params.region)

    return Context(
        user_id=user_id,
        i_user_id=alt_cookie.value if alt_cookie is not None else None,
        client_id=generate_client_id(),
        cookies=cookies,
        settings=settings,
        mqtt_endpoint=params.endpoint,
        region=params.region,
        fb_dtsg=params.token,
    )
