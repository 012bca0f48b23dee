"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
Long-lived resources (HTTP client, rate-limit store, session registry)
are created during app lifespan and stored in app.state.
"""

import httpx
from fastapi import Depends, Request

from claimgate.adapters.commerce.shopify import ShopifyCommerceOracle
from claimgate.adapters.notify.console import ConsoleNotificationSink
from claimgate.adapters.notify.discord import DiscordWebhookSink
from claimgate.adapters.roblox.identity import RobloxIdentityDirectory
from claimgate.adapters.roblox.presence import RobloxPresenceService
from claimgate.config.settings import Settings, get_settings
from claimgate.domain.identity import IdentityResolver
from claimgate.domain.notifications import NotificationEmitter
from claimgate.domain.orders import OrderValidator
from claimgate.domain.ports import NotificationSink, RateLimitStore, SessionStore
from claimgate.domain.presence import PresencePoller
from claimgate.domain.rate_limiter import RateLimiter
from claimgate.domain.workflow import ClaimWorkflow

# Module-level singleton - ConsoleNotificationSink is stateless
_console_sink = ConsoleNotificationSink()

UNKNOWN_CLIENT = "unknown"


def get_http_client(request: Request) -> httpx.Client:
    """Shared outbound HTTP client from app state."""
    return request.app.state.http_client


def get_rate_limit_store(request: Request) -> RateLimitStore:
    return request.app.state.rate_limit_store


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_client_key(request: Request, settings: Settings = Depends(get_settings)) -> str:
    """
    Identify the client for rate limiting.

    The socket peer is used unless ``trusted_proxy_hops`` proxies sit in
    front of the app. Each of them appends the address it saw to
    X-Forwarded-For, so the client is the entry that many positions from
    the right; anything further left was written by the client itself.
    Falls back to a fixed sentinel so the key is never empty.
    """
    hops = settings.trusted_proxy_hops
    if hops > 0:
        forwarded = [hop.strip() for hop in request.headers.get("x-forwarded-for", "").split(",")]
        forwarded = [hop for hop in forwarded if hop]
        if len(forwarded) >= hops:
            return forwarded[-hops]
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


def get_notification_sink(request: Request) -> NotificationSink:
    """Discord webhook when configured, console log otherwise."""
    settings = get_settings()
    if settings.discord_webhook_url:
        return DiscordWebhookSink(get_http_client(request), settings.discord_webhook_url)
    return _console_sink


def get_claim_workflow(request: Request) -> ClaimWorkflow:
    """
    Create the claim workflow with injected dependencies.

    Wires the rate limiter, order validator, identity resolver and
    notification emitter onto their adapters.
    """
    settings = get_settings()
    client = get_http_client(request)

    rate_limiter = RateLimiter(
        store=get_rate_limit_store(request),
        max_attempts=settings.rate_limit_max_attempts,
        window_seconds=settings.rate_limit_window_seconds,
        fail_open=settings.rate_limit_fail_open,
    )
    oracle = ShopifyCommerceOracle(
        client,
        store_domain=settings.shopify_store_domain,
        access_token=settings.shopify_access_token.get_secret_value(),
        api_version=settings.shopify_api_version,
    )
    directory = RobloxIdentityDirectory(
        client,
        users_url=settings.roblox_users_url,
        thumbnails_url=settings.roblox_thumbnails_url,
        avatar_size=settings.avatar_size,
    )
    return ClaimWorkflow(
        rate_limiter=rate_limiter,
        order_validator=OrderValidator(oracle),
        identity_resolver=IdentityResolver(directory),
        notifier=NotificationEmitter(get_notification_sink(request)),
        max_attempts=settings.session_max_attempts,
    )


def get_presence_poller(request: Request) -> PresencePoller:
    settings = get_settings()
    service = RobloxPresenceService(get_http_client(request), presence_url=settings.roblox_presence_url)
    return PresencePoller(service)
