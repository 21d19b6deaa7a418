"""Cross-site request token refresh."""
from __future__ import annotations

from typing import Optional

import httpx

from fchat._logging import get_component_logger
from fchat.capabilities.base import capability
from fchat.extract import extract_token
from fchat.http import LANDING_URL
from fchat.types import RefreshError

logger = get_component_logger("refresh_fb_dtsg")


@capability("refresh_fb_dtsg")
def refresh_fb_dtsg(defaults, api, ctx):
    async def refresh_fb_dtsg(document: Optional[str] = None) -> str:
        """Fetch a fresh token (or read it from ``document``) and store it on the context.

        Raises:
            RefreshError: the request failed or the page carried no token
        """
        if document is None:
            try:
                response = await defaults.get(LANDING_URL)
            except httpx.HTTPError as exc:
                raise RefreshError(f"Request failed while refreshing token: {exc}", raw=exc) from exc
            document = response.text

        token = extract_token(document)
        if not token:
            raise RefreshError("Could not find fb_dtsg in the landing document")

        ctx.fb_dtsg = token
        logger.debug("fb_dtsg_refreshed")
        return token

    return refresh_fb_dtsg
