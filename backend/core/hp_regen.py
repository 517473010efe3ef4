"""
Passive HP regeneration.

HP regenerates at a fixed share of max HP per minute of wall-clock time,
computed from the elapsed time since the last regen step. On an exempt
route (dungeon pages) the regen clock is reset on every tick without any
gain, so no regeneration is banked while there.

The service is driven by a fixed-interval background tick plus explicit
triggers from the hosting application: navigation events, visibility
changes and forced ticks. Clock and storage are injected.

HpRegenService owns one player's state. HpRegenRegistry keeps one service
per user and drives them all from a single background tick.
"""

import logging
import threading
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence

from application.ports import HpRegenState, HpStateStore
from backend.core.clock import Clock, system_clock_ms

logger = logging.getLogger(__name__)

MINUTE_MS = 60000
DEFAULT_EXEMPT_ROUTES = ("/pve-dungeons", "/dungeon-battle")

Subscriber = Callable[[HpRegenState], None]


class HpRegenService:
    """
    Owns one HpRegenState and keeps it regenerating.

    Args:
        store: Durable storage for the state
        clock: Returns wall-clock milliseconds
        exempt_routes: Route fragments on which no HP regenerates
        percent_per_minute: Share of max HP regenerated per minute
        tick_seconds: Background tick interval
        initial_route: Route the host starts on
    """

    def __init__(
        self,
        store: HpStateStore,
        *,
        clock: Clock = system_clock_ms,
        exempt_routes: Sequence[str] = DEFAULT_EXEMPT_ROUTES,
        percent_per_minute: float = 1.0,
        tick_seconds: float = 5,
        initial_route: str = "/",
    ):
        self._store = store
        self._clock = clock
        self.exempt_routes = tuple(exempt_routes)
        self.percent_per_minute = percent_per_minute
        self.tick_seconds = tick_seconds
        self.current_route = initial_route

        self._lock = threading.RLock()
        self._subscribers: List[Subscriber] = []
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._state = self._load_state()

    def _load_state(self) -> HpRegenState:
        stored = self._store.load()
        if stored is None:
            return HpRegenState(hp=0, max_hp=0, last_regen_ms=self._clock())
        max_hp = max(0.0, stored.max_hp or 0)
        return HpRegenState(
            hp=min(max(0.0, stored.hp or 0), max_hp),
            max_hp=max_hp,
            last_regen_ms=stored.last_regen_ms or self._clock(),
        )

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> HpRegenState:
        with self._lock:
            return replace(self._state)

    @property
    def is_full(self) -> bool:
        """True when there is nothing to regenerate."""
        with self._lock:
            return self._state.max_hp <= 0 or self._state.hp >= self._state.max_hp

    def is_exempt_route(self, route: Optional[str] = None) -> bool:
        route = self.current_route if route is None else route
        return any(fragment in route for fragment in self.exempt_routes)

    def tick(self) -> HpRegenState:
        """Run one regen step now."""
        with self._lock:
            now = self._clock()
            state = self._state

            if self.is_exempt_route():
                state.last_regen_ms = now
                logger.debug("Regen clock reset on exempt route %s", self.current_route)
                self._persist(notify=True)
                return replace(state)

            if self.is_full:
                # Nothing to regenerate; the clock only moves in memory
                state.last_regen_ms = now
                return replace(state)

            elapsed_ms = now - state.last_regen_ms
            if elapsed_ms > 0:
                gain = (elapsed_ms / MINUTE_MS) * (self.percent_per_minute / 100) * state.max_hp
                new_hp = min(state.max_hp, state.hp + gain)
                logger.debug(
                    "Regen: %d ms elapsed, %.3f -> %.3f HP", elapsed_ms, state.hp, new_hp
                )
                if new_hp > state.hp:
                    state.hp = new_hp
                    state.last_regen_ms = now
                    self._persist(notify=True)

            return replace(state)

    def set_player_state(self, hp: float, max_hp: float) -> HpRegenState:
        """
        Overwrite HP from gameplay (e.g. battle damage).

        The regen clock restarts at now, so time spent under the old values
        is never regenerated on the next tick.
        """
        with self._lock:
            max_hp = max(0.0, max_hp)
            self._state.max_hp = max_hp
            self._state.hp = max(0.0, min(hp, max_hp))
            self._state.last_regen_ms = self._clock()
            self._persist(notify=True)
            return replace(self._state)

    def flush(self) -> None:
        """Save the current state, e.g. before the service is dropped."""
        with self._lock:
            self._persist(notify=False)

    def _persist(self, *, notify: bool) -> None:
        self._store.save(replace(self._state))
        if notify:
            self._notify()

    # -------------------------------------------------------------------------
    # Subscribers
    # -------------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a state observer. Returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    @property
    def has_subscribers(self) -> bool:
        with self._lock:
            return bool(self._subscribers)

    def _notify(self) -> None:
        snapshot = replace(self._state)
        for callback in list(self._subscribers):
            try:
                callback(replace(snapshot))
            except Exception:
                logger.exception("HP regen subscriber failed")

    # -------------------------------------------------------------------------
    # Host triggers
    # -------------------------------------------------------------------------

    def on_navigation(self, route: str) -> HpRegenState:
        """Called by the host whenever the current route changes."""
        self.current_route = route
        return self.tick()

    def on_visibility_change(self, visible: bool) -> Optional[HpRegenState]:
        """Called by the host when it is shown or hidden. Ticks when shown."""
        if not visible:
            return None
        return self.tick()

    # -------------------------------------------------------------------------
    # Background tick
    # -------------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background tick. Does nothing if already running."""
        with self._lock:
            if self.is_running:
                logger.debug("HP regen already running")
                return
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run, name="hp_regen", daemon=True
            )
            self._thread.start()

        # Catch up on time away
        self.tick()
        with self._lock:
            self._notify()

    def stop(self) -> None:
        """Stop the background tick. Does nothing if not running."""
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._thread = None
            self._stop_event.set()
        thread.join(timeout=self.tick_seconds + 1)
        logger.debug("HP regen stopped")

    def _run(self) -> None:
        while not self._stop_event.wait(self.tick_seconds):
            try:
                self.tick()
            except Exception:
                logger.exception("HP regen tick failed")


class HpRegenRegistry:
    """
    One HpRegenService per user, all driven by a single background tick.

    Services are created on first use from `store_factory(user_id)`, so each
    user has their own state, route and storage. A service that has not been
    requested for `idle_ticks` ticks is saved and dropped once it is at full
    HP, or once it is off exempt routes (its regen is recomputed from elapsed
    time when it is loaded again).

    Args:
        store_factory: Returns the HpStateStore for a user id
        clock: Returns wall-clock milliseconds
        exempt_routes: Route fragments on which no HP regenerates
        percent_per_minute: Share of max HP regenerated per minute
        tick_seconds: Background tick interval
        idle_ticks: Ticks without a request before a service may be dropped
    """

    def __init__(
        self,
        store_factory: Callable[[str], HpStateStore],
        *,
        clock: Clock = system_clock_ms,
        exempt_routes: Sequence[str] = DEFAULT_EXEMPT_ROUTES,
        percent_per_minute: float = 1.0,
        tick_seconds: float = 5,
        idle_ticks: int = 12,
    ):
        self._store_factory = store_factory
        self._clock = clock
        self.exempt_routes = tuple(exempt_routes)
        self.percent_per_minute = percent_per_minute
        self.tick_seconds = tick_seconds
        self.idle_ticks = idle_ticks

        self._lock = threading.Lock()
        self._services: Dict[str, HpRegenService] = {}
        self._last_access: Dict[str, int] = {}
        self._tick_count = 0
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def for_user(self, user_id: str) -> HpRegenService:
        """The user's service, created and loaded from storage on first use."""
        with self._lock:
            service = self._services.get(user_id)
            if service is None:
                service = HpRegenService(
                    self._store_factory(user_id),
                    clock=self._clock,
                    exempt_routes=self.exempt_routes,
                    percent_per_minute=self.percent_per_minute,
                    tick_seconds=self.tick_seconds,
                )
                self._services[user_id] = service
                logger.debug("HP regen state loaded for user %s", user_id)
            self._last_access[user_id] = self._tick_count
            return service

    @property
    def user_ids(self) -> List[str]:
        with self._lock:
            return list(self._services)

    def tick_all(self) -> None:
        """Run one regen step for every loaded user, then drop idle ones."""
        with self._lock:
            self._tick_count += 1
            services = list(self._services.items())
        for user_id, service in services:
            try:
                service.tick()
            except Exception:
                logger.exception("HP regen tick failed for user %s", user_id)
        self._evict_idle()

    def _evict_idle(self) -> None:
        with self._lock:
            idle = [
                (user_id, service)
                for user_id, service in self._services.items()
                if self._tick_count - self._last_access[user_id] >= self.idle_ticks
                and not service.has_subscribers
                and (service.is_full or not service.is_exempt_route())
            ]
            for user_id, service in idle:
                try:
                    service.flush()
                except Exception:
                    logger.exception("Could not save HP state for user %s, keeping it loaded", user_id)
                    continue
                del self._services[user_id]
                del self._last_access[user_id]
                logger.debug("HP regen state unloaded for idle user %s", user_id)

    # -------------------------------------------------------------------------
    # Background tick
    # -------------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the shared background tick. Does nothing if already running."""
        with self._lock:
            if self.is_running:
                logger.debug("HP regen already running")
                return
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run, name="hp_regen", daemon=True
            )
            self._thread.start()

    def stop(self) -> None:
        """Stop the shared background tick. Does nothing if not running."""
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._thread = None
            self._stop_event.set()
        thread.join(timeout=self.tick_seconds + 1)
        logger.debug("HP regen stopped")

    def _run(self) -> None:
        while not self._stop_event.wait(self.tick_seconds):
            self.tick_all()
