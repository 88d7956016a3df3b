import asyncio
from logging import getLogger
from os import environ as env
from pathlib import Path
from typing import Any, Coroutine, Mapping, Optional, Union

from dotenv import load_dotenv

from ._config import Config
from ._config_loader import load_declarations
from ._services import FeatureGateway, FeaturesService
from ._state import FlagCache, UsageRecorder
from ._utils._logs import setup_logging
from ._utils.constants import (
    DEFAULT_API_URL,
    DEFAULT_POLL_INTERVAL,
    ENV_API_URL,
    ENV_CONFIG_PATH,
    ENV_PRIVATE_KEY,
    ENV_PUBLIC_KEY,
)
from .models import (
    FeatureDeclaration,
    FeatureFlag,
    FlipFlagConfigurationError,
    FlipFlagError,
    LifecycleError,
    ManagerState,
)

load_dotenv()

logger = getLogger("flipflag")


class FlipFlag:
    """Manager for interacting with FlipFlag.

    Loads the local ``.flipflag.yml`` declarations, keeps a local copy of the
    project's feature flags and periodically syncs flags, declarations and
    usage with the FlipFlag API.

    Examples:
        ```python
        from flipflag import FlipFlag

        async with FlipFlag(public_key="pub", private_key="priv") as flipflag:
            if flipflag.is_enabled("checkout.new-flow"):
                ...
        ```
    """

    def __init__(
        self,
        *,
        public_key: Optional[str] = None,
        private_key: Optional[str] = None,
        api_url: Optional[str] = None,
        config_path: Union[str, Path, None] = None,
        ignore_missing_config: bool = True,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        debug: bool = False,
        service: Optional[FeatureGateway] = None,
    ) -> None:
        self._config = Config(
            public_key=public_key or env.get(ENV_PUBLIC_KEY),
            private_key=private_key or env.get(ENV_PRIVATE_KEY),
            api_url=api_url
            if api_url is not None
            else env.get(ENV_API_URL, DEFAULT_API_URL),
            config_path=config_path or env.get(ENV_CONFIG_PATH),
            ignore_missing_config=ignore_missing_config,
            poll_interval=poll_interval,
            debug=debug,
        )

        setup_logging(self._config.debug)

        logger.debug("CONFIG:")
        logger.debug(f"{self._config.model_dump(exclude={'private_key'})}\n")

        self._service: FeatureGateway = service or FeaturesService(self._config)
        self._owns_service = service is None

        self._state = ManagerState.UNINITIALIZED
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._timer: Optional[asyncio.Task[None]] = None
        self._tasks: set[asyncio.Task[Any]] = set()

        self._declarations: dict[str, FeatureDeclaration] = {}
        self._flags = FlagCache()
        self._usage = UsageRecorder()

    @property
    def config(self) -> Config:
        return self._config

    @property
    def state(self) -> ManagerState:
        return self._state

    @property
    def initialized(self) -> bool:
        return self._state is ManagerState.RUNNING

    @property
    def declarations(self) -> dict[str, FeatureDeclaration]:
        return dict(self._declarations)

    async def init(self) -> None:
        """Start the manager.

        Loads the declaration file, fetches the feature flags, pushes every
        loaded declaration and starts polling every ``poll_interval`` seconds
        to refresh flags, sync declarations and report usage.

        Raises:
            LifecycleError: The manager was already started or destroyed.
            FlipFlagConfigurationError: The configuration file or the SDK
                options are invalid.
            FlipFlagRemoteError: The initial flag fetch failed.
        """
        if self._state is not ManagerState.UNINITIALIZED:
            raise LifecycleError(
                f"FlipFlag: cannot init a manager that is {self._state.value}"
            )

        self._state = ManagerState.INITIALIZING
        self._loop = asyncio.get_running_loop()

        try:
            self._declarations.update(
                load_declarations(
                    self._config.config_path, self._config.ignore_missing_config
                )
            )

            flags = await self._service.fetch_flags_async()
            if self._state is not ManagerState.INITIALIZING:
                raise LifecycleError("FlipFlag: manager was destroyed during init")

            self._flags.replace(flags)
            self._state = ManagerState.RUNNING

            await self._sync_features_times()
        except BaseException:
            self.destroy()
            raise

        if self._state is ManagerState.RUNNING:
            self._timer = self._loop.create_task(self._poll())

    def destroy(self) -> None:
        """Stop polling and forget every flag, declaration and usage record.

        Requests already in flight are not cancelled but their results are
        discarded. Calling it again is a no-op.
        """
        if self._state is ManagerState.DESTROYED:
            return

        self._state = ManagerState.DESTROYED
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        self._declarations = {}
        self._flags.clear()
        self._usage.clear()

    async def aclose(self) -> None:
        """Destroy the manager, wait for pending syncs and close the HTTP client."""
        self.destroy()
        # Let tasks handed over from other threads get created first.
        await asyncio.sleep(0)
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        if self._owns_service:
            await self._service.aclose()

    async def __aenter__(self) -> "FlipFlag":
        await self.init()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def is_enabled(self, feature_name: str) -> bool:
        """Check whether a feature is enabled.

        A feature unknown to the local flags is declared on the FlipFlag API
        in the background (when a private key is configured) and reported as
        disabled.

        Args:
            feature_name: Name of the feature.

        Returns:
            bool: ``True`` if the feature is enabled, otherwise ``False``.
        """
        if self._state is ManagerState.DESTROYED:
            return False

        flag = self._flags.get(feature_name)
        if flag is None:
            if self._service.can_declare:
                self._spawn(
                    self._service.declare_feature_async(
                        feature_name, FeatureDeclaration(times=[])
                    )
                )
            return False

        self._usage.record_use(feature_name)
        return flag.enabled

    def get_flag(self, feature_name: str) -> Optional[FeatureFlag]:
        """Locally cached flag of a feature, without any side effect."""
        return self._flags.get(feature_name)

    def declare_feature(
        self,
        feature_name: str,
        declaration: Union[FeatureDeclaration, Mapping[str, Any]],
    ) -> None:
        """Store a declaration to be pushed on the next sync.

        Replaces any previous declaration of the same feature.

        Raises:
            LifecycleError: The manager was destroyed.
        """
        if self._state is ManagerState.DESTROYED:
            raise LifecycleError("FlipFlag: cannot declare on a destroyed manager")

        if not isinstance(declaration, FeatureDeclaration):
            declaration = FeatureDeclaration.model_validate(declaration)
        self._declarations[feature_name] = declaration

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self._config.poll_interval)
            if self._state is not ManagerState.RUNNING:
                return
            self._tick()

    def _tick(self) -> None:
        self._spawn(self._refresh_flags())
        self._spawn(self._sync_features_times())
        self._spawn(self._sync_features_usage())

    async def _refresh_flags(self) -> None:
        try:
            flags = await self._service.fetch_flags_async()
        except FlipFlagError as e:
            logger.warning(f"Get list features flag: {e}")
            return

        if self._state is ManagerState.RUNNING:
            self._flags.replace(flags)

    async def _sync_features_times(self) -> None:
        if not self._service.can_declare:
            return

        pending = list(self._declarations.items())
        results = await asyncio.gather(
            *(
                self._service.declare_feature_async(name, declaration)
                for name, declaration in pending
            ),
            return_exceptions=True,
        )
        for (name, _), result in zip(pending, results):
            if isinstance(result, Exception):
                logger.warning(f"Create Feature: {name}: {result!r}")

    async def _sync_features_usage(self) -> None:
        usages = self._usage.drain()
        reported = await self._service.report_usage_async(usages)
        if reported and self._state is ManagerState.RUNNING:
            self._usage.acknowledge(usages)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        """Run ``coro`` in the background on the manager's event loop."""
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("FlipFlag: no event loop yet, skipping background sync")
            coro.close()
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            self._track(loop, coro)
        else:
            # Tasks are only created and tracked on the loop thread.
            loop.call_soon_threadsafe(self._track, loop, coro)

    def _track(
        self, loop: asyncio.AbstractEventLoop, coro: Coroutine[Any, Any, Any]
    ) -> None:
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: "asyncio.Task[Any]") -> None:
        self._tasks.discard(task)

        if task.cancelled():
            return

        exc = task.exception()
        if exc is None:
            return

        if isinstance(exc, FlipFlagConfigurationError) and self._loop is not None:
            self.destroy()
            self._loop.call_exception_handler(
                {
                    "message": "FlipFlag: background sync failed, manager destroyed",
                    "exception": exc,
                }
            )
            return

        logger.error("FlipFlag: background sync failed", exc_info=exc)
