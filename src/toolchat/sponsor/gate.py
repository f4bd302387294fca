"""Sponsor gating and the interstitial countdown.

Hidden design decisions:
- When an inventory failure counts as "no sponsor available" (always)
- How the probability draw is sourced (injectable random.Random)
- How the countdown is scheduled (one asyncio task, ticking once per second)
- That resolution is time-driven and can never be undone
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, Protocol

from ..config import SPONSOR_COUNTDOWN_SECONDS, SPONSOR_MIN_PRIOR_TURNS, SPONSOR_PROBABILITY
from .base import SponsorInventory
from .models import AdAvailability, GateDecision, utc_now

logger = logging.getLogger(__name__)


class SupportsSponsorResolution(Protocol):
    def mark_sponsor_resolved(self) -> None: ...


class Interstitial:
    """Countdown shown in front of a withheld visitor turn.

    The countdown starts when the sponsor message is inserted and resolves
    after a fixed number of one-second ticks. Once resolved it stays resolved.
    """

    def __init__(
        self,
        message: SupportsSponsorResolution,
        countdown_seconds: int = SPONSOR_COUNTDOWN_SECONDS,
        *,
        on_tick: Callable[[int], None] | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._message = message
        self._seconds_left = max(0, countdown_seconds)
        self._on_tick = on_tick
        self._sleep = sleep
        self._resolved = False
        self._cancelled = False
        self._task: asyncio.Task | None = None

    @property
    def seconds_left(self) -> int:
        return self._seconds_left

    @property
    def resolved(self) -> bool:
        return self._resolved

    @property
    def click_through_enabled(self) -> bool:
        return self._resolved

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> "Interstitial":
        """Schedule the countdown on the running loop."""
        if self._task is None and not self._cancelled:
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self

    async def _run(self) -> None:
        while self._seconds_left > 0:
            await self._sleep(1)
            self._seconds_left -= 1
            if self._on_tick is not None:
                try:
                    self._on_tick(self._seconds_left)
                except Exception:
                    logger.exception("Interstitial tick callback failed")
        self._resolve()

    def _resolve(self) -> None:
        if self._resolved or self._cancelled:
            return
        self._resolved = True
        self._message.mark_sponsor_resolved()

    def cancel(self) -> None:
        """Discard the countdown without awaiting it.

        A resolved interstitial stays resolved.
        """
        if self._resolved:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> bool:
        """Wait for the countdown to end; True if it resolved."""
        if self._task is not None:
            await asyncio.wait({self._task})
        return self._resolved


class SponsorGate:
    """Decides whether a sponsor interstitial precedes a visitor turn."""

    def __init__(
        self,
        inventory: SponsorInventory | None,
        probability: float = SPONSOR_PROBABILITY,
        countdown_seconds: int = SPONSOR_COUNTDOWN_SECONDS,
        *,
        min_prior_turns: int = SPONSOR_MIN_PRIOR_TURNS,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the gate.

        Args:
            inventory: Sponsor source (None means never gate)
            probability: Chance of gating an eligible turn
            countdown_seconds: Interstitial length
            min_prior_turns: Prior visitor turns required before gating
            rng: Random source for the draw
            sleep: Awaitable sleep used by the countdown
            clock: Returns the current UTC time for availability checks
        """
        if not 0.0 <= probability <= 1.0:
            raise ValueError(f"probability must be within [0, 1], got {probability}")
        self._inventory = inventory
        self._probability = probability
        self._countdown_seconds = countdown_seconds
        self._min_prior_turns = min_prior_turns
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._clock = clock

    @property
    def countdown_seconds(self) -> int:
        return self._countdown_seconds

    def should_gate(self, turn_index: int, ad_available: bool) -> bool:
        """Draw for a single turn.

        Args:
            turn_index: Number of visitor turns before this one
            ad_available: Result of the availability check for this turn
        """
        if not ad_available or turn_index < self._min_prior_turns:
            return False
        return self._rng.random() < self._probability

    async def check_availability(self, now: datetime | None = None) -> AdAvailability:
        """Query the inventory, treating any failure as unavailable."""
        if self._inventory is None:
            return AdAvailability.unavailable()
        try:
            return await self._inventory.check_active(now or self._clock())
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Sponsor availability check failed, skipping sponsor: %s", e)
            return AdAvailability.unavailable()

    async def evaluate(self, turn_index: int, now: datetime | None = None) -> GateDecision:
        """Check availability and draw for this submission (never cached)."""
        availability = await self.check_availability(now)
        ad_available = availability.available and availability.ad is not None
        if self.should_gate(turn_index, ad_available):
            logger.debug("Gating turn %d with sponsor %s", turn_index, availability.ad.id)
            return GateDecision(show=True, ad=availability.ad)
        return GateDecision(show=False)

    def start_interstitial(
        self,
        message: SupportsSponsorResolution,
        on_tick: Callable[[int], None] | None = None,
    ) -> Interstitial:
        """Begin the countdown for a freshly inserted sponsor message."""
        return Interstitial(
            message,
            self._countdown_seconds,
            on_tick=on_tick,
            sleep=self._sleep,
        ).start()
