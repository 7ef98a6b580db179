"""
Lists the users of a tenant and verifies a token passed on the command line.

Reads AUTH0_DOMAIN, AUTH0_CLIENT_ID and AUTH0_CLIENT_SECRET from the
environment or a .env file in the working directory.
"""

import asyncio
import logging
import os
import sys

from auth0_client import Auth0Client, Auth0Error, UserQuery

logging.basicConfig(level=logging.DEBUG if os.getenv("DEBUG", "false").lower() == "true" else logging.INFO)
logger = logging.getLogger(__name__)


async def main() -> int:
    async with Auth0Client.from_env() as client:
        try:
            users = await client.get_users(UserQuery(per_page=10, fields=["user_id", "email"]))
        except Auth0Error as e:
            logger.error("Listing users failed: %s (%s)", e, e.code)
            return 1

        for user in users:
            logger.info("%s %s", user.user_id, user.email or "")

        if len(sys.argv) > 1:
            try:
                claims = await client.verify_access_token(sys.argv[1])
            except Auth0Error as e:
                logger.error("Token rejected: %s", e)
                return 1
            logger.info("Token valid for %s", claims.get("sub"))

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
