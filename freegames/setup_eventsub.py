#!/usr/bin/env python
"""
Twitch EventSub registration command.

Registers the webhook with Twitch so it receives channel-point
redemption events. Any existing redemption subscriptions for the app are
deleted first, so running it again simply re-points the subscription.

Before running:
1. Set TWITCH_CLIENT_ID, TWITCH_CLIENT_SECRET, TWITCH_WEBHOOK_SECRET,
   TWITCH_BROADCASTER_LOGIN and WEBHOOK_URL (environment or .env)
2. Make sure the service is deployed and reachable at WEBHOOK_URL
3. Run: freegames-setup-eventsub
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

import httpx

from freegames.config import PLACEHOLDER_WEBHOOK_URL, Settings, settings
from freegames.models.common import SubscriptionType
from freegames.services.twitch_client import TwitchAPIError, TwitchClient

logger = logging.getLogger("freegames.setup_eventsub")

VERIFICATION_PENDING = "webhook_callback_verification_pending"


def validate_settings(cfg: Settings, webhook_url: str) -> list[str]:
    """Return a list of configuration problems (empty if ready to run)."""
    problems = []
    if not cfg.TWITCH_CLIENT_ID:
        problems.append("Please set your TWITCH_CLIENT_ID")
    if not cfg.TWITCH_CLIENT_SECRET:
        problems.append(
            "Please set your TWITCH_CLIENT_SECRET "
            "(get it from https://dev.twitch.tv/console/apps)"
        )
    if not cfg.TWITCH_WEBHOOK_SECRET:
        problems.append(
            "Please set a TWITCH_WEBHOOK_SECRET: a random string, "
            "the same value the deployed service uses"
        )
    if not cfg.TWITCH_BROADCASTER_LOGIN:
        problems.append("Please set TWITCH_BROADCASTER_LOGIN")
    if not webhook_url or webhook_url == PLACEHOLDER_WEBHOOK_URL:
        problems.append(
            "Please set WEBHOOK_URL to your deployed site, "
            "e.g. https://free-games.example.com/api/twitch-webhook"
        )
    return problems


async def register(
    client: TwitchClient,
    broadcaster_login: str,
    webhook_url: str,
    webhook_secret: str,
    replace_existing: bool = True,
) -> dict:
    """Run the full registration flow and return the new subscription."""
    await client.get_app_access_token()
    broadcaster_id = await client.get_broadcaster_id(broadcaster_login)
    print(f"✓ Broadcaster ID: {broadcaster_id}")

    existing = await client.list_subscriptions()
    if existing:
        print(f"Found {len(existing)} existing subscription(s):")
        for sub in existing:
            print(f"  - {sub.get('type')} ({sub.get('status')}) - ID: {sub.get('id')}")
    else:
        print("No existing subscriptions found.")

    if replace_existing:
        for sub in existing:
            if sub.get("type") == SubscriptionType.REWARD_REDEMPTION_ADD:
                print(f"Deleting subscription {sub['id']}...")
                if await client.delete_subscription(sub["id"]):
                    print("✓ Subscription deleted")

    print(f"\nCreating EventSub subscription...\n  Webhook URL: {webhook_url}")
    subscription = await client.create_redemption_subscription(
        broadcaster_id, webhook_url, webhook_secret
    )
    print("✓ Subscription created successfully!")
    print(f"  Status: {subscription.get('status')}")
    print(f"  ID: {subscription.get('id')}")

    if subscription.get("status") == VERIFICATION_PENDING:
        print("\nWaiting for Twitch to verify your webhook...")
        print("   Make sure the service is deployed and accessible!")
    return subscription


async def _run(cfg: Settings, webhook_url: str, replace_existing: bool) -> None:
    async with httpx.AsyncClient(timeout=cfg.HTTP_TIMEOUT_SECONDS) as http:
        client = TwitchClient(http, cfg.TWITCH_CLIENT_ID, cfg.TWITCH_CLIENT_SECRET)
        await register(
            client,
            cfg.TWITCH_BROADCASTER_LOGIN,
            webhook_url,
            cfg.TWITCH_WEBHOOK_SECRET,
            replace_existing=replace_existing,
        )


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Register the Twitch EventSub redemption webhook"
    )
    parser.add_argument(
        "--webhook-url",
        default=settings.WEBHOOK_URL,
        help="Public callback URL (default: WEBHOOK_URL)",
    )
    parser.add_argument(
        "--keep-existing",
        action="store_true",
        help="Do not delete existing redemption subscriptions",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=== Twitch EventSub Setup ===\n")
    problems = validate_settings(settings, args.webhook_url)
    if problems:
        for problem in problems:
            print(f"❌ {problem}")
        return 1

    try:
        asyncio.run(_run(settings, args.webhook_url, not args.keep_existing))
    except (TwitchAPIError, httpx.HTTPError) as e:
        logger.error("EventSub setup failed: %s", e)
        print(f"\n❌ Error: {e}")
        return 1

    print("\n=== Setup Complete ===")
    print(f'Redemptions of "{settings.REWARD_TITLE}" will now credit a ticket.')
    return 0


if __name__ == "__main__":
    sys.exit(main())
