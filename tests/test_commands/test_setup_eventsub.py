"""Tests for the EventSub registration command."""

import json

import httpx
import pytest

from freegames import setup_eventsub
from freegames.config import PLACEHOLDER_WEBHOOK_URL, Settings
from freegames.services.twitch_client import HELIX_URL, TOKEN_URL, TwitchAPIError, TwitchClient

CALLBACK = "https://games.example.com/api/twitch-webhook"
REDEMPTION = "channel.channel_points_custom_reward_redemption.add"


def _ready_settings(**overrides) -> Settings:
    values = {
        "TWITCH_CLIENT_ID": "client-id",
        "TWITCH_CLIENT_SECRET": "client-secret",
        "TWITCH_WEBHOOK_SECRET": "hook-secret",
        "TWITCH_BROADCASTER_LOGIN": "streamer",
        "WEBHOOK_URL": CALLBACK,
    }
    values.update(overrides)
    return Settings(**values)


class FakeTwitch:
    """Records calls made against a mocked Twitch API."""

    def __init__(self, existing=None, create_status=202):
        self.existing = existing or []
        self.create_status = create_status
        self.deleted: list[str] = []
        self.created: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url == TOKEN_URL:
            return httpx.Response(200, json={"access_token": "app-token"})
        if url.startswith(f"{HELIX_URL}/users"):
            return httpx.Response(200, json={"data": [{"id": "42"}]})
        if request.method == "GET":
            return httpx.Response(200, json={"data": self.existing})
        if request.method == "DELETE":
            self.deleted.append(request.url.params["id"])
            return httpx.Response(204)
        self.created.append(json.loads(request.content))
        if self.create_status >= 400:
            return httpx.Response(self.create_status, json={"message": "nope"})
        return httpx.Response(
            self.create_status,
            json={"data": [{"id": "new-sub", "status": "webhook_callback_verification_pending"}]},
        )


class TestValidateSettings:

    def test_ready(self):
        assert setup_eventsub.validate_settings(_ready_settings(), CALLBACK) == []

    def test_reports_every_missing_value(self):
        cfg = _ready_settings(
            TWITCH_CLIENT_ID="",
            TWITCH_CLIENT_SECRET="",
            TWITCH_WEBHOOK_SECRET="",
            TWITCH_BROADCASTER_LOGIN="",
        )
        problems = setup_eventsub.validate_settings(cfg, PLACEHOLDER_WEBHOOK_URL)
        assert len(problems) == 5
        assert any("TWITCH_CLIENT_ID" in p for p in problems)
        assert any("WEBHOOK_URL" in p for p in problems)


class TestRegister:

    @pytest.mark.asyncio
    async def test_replaces_existing_redemption_subscriptions(self):
        fake = FakeTwitch(
            existing=[
                {"id": "old-1", "type": REDEMPTION, "status": "enabled"},
                {"id": "follow-1", "type": "channel.follow", "status": "enabled"},
            ]
        )
        async with httpx.AsyncClient(transport=httpx.MockTransport(fake)) as http:
            client = TwitchClient(http, "client-id", "client-secret")
            sub = await setup_eventsub.register(client, "streamer", CALLBACK, "hook-secret")

        assert sub["id"] == "new-sub"
        assert fake.deleted == ["old-1"]
        assert fake.created[0]["condition"] == {"broadcaster_user_id": "42"}
        assert fake.created[0]["transport"]["callback"] == CALLBACK

    @pytest.mark.asyncio
    async def test_keep_existing_skips_deletes(self):
        fake = FakeTwitch(existing=[{"id": "old-1", "type": REDEMPTION}])
        async with httpx.AsyncClient(transport=httpx.MockTransport(fake)) as http:
            client = TwitchClient(http, "client-id", "client-secret")
            await setup_eventsub.register(
                client, "streamer", CALLBACK, "hook-secret", replace_existing=False
            )

        assert fake.deleted == []
        assert len(fake.created) == 1

    @pytest.mark.asyncio
    async def test_create_failure_raises(self):
        fake = FakeTwitch(create_status=409)
        async with httpx.AsyncClient(transport=httpx.MockTransport(fake)) as http:
            client = TwitchClient(http, "client-id", "client-secret")
            with pytest.raises(TwitchAPIError):
                await setup_eventsub.register(client, "streamer", CALLBACK, "hook-secret")


class TestMain:

    def test_missing_configuration_exits_1(self, monkeypatch, capsys):
        monkeypatch.setattr(setup_eventsub, "settings", _ready_settings(TWITCH_CLIENT_ID=""))

        assert setup_eventsub.main([]) == 1
        assert "TWITCH_CLIENT_ID" in capsys.readouterr().out

    def test_placeholder_url_exits_1(self, monkeypatch):
        monkeypatch.setattr(setup_eventsub, "settings", _ready_settings())

        assert setup_eventsub.main(["--webhook-url", PLACEHOLDER_WEBHOOK_URL]) == 1

    def test_success(self, monkeypatch):
        calls = []

        async def fake_run(cfg, webhook_url, replace_existing):
            calls.append((webhook_url, replace_existing))

        monkeypatch.setattr(setup_eventsub, "settings", _ready_settings())
        monkeypatch.setattr(setup_eventsub, "_run", fake_run)

        assert setup_eventsub.main(["--webhook-url", CALLBACK, "--keep-existing"]) == 0
        assert calls == [(CALLBACK, False)]

    def test_twitch_error_exits_1(self, monkeypatch):
        async def failing_run(cfg, webhook_url, replace_existing):
            raise TwitchAPIError("User not found: streamer", status_code=200)

        monkeypatch.setattr(setup_eventsub, "settings", _ready_settings())
        monkeypatch.setattr(setup_eventsub, "_run", failing_run)

        assert setup_eventsub.main(["--webhook-url", CALLBACK]) == 1
