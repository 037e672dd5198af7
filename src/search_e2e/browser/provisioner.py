"""Per-scenario browser provisioning."""

import logging
from pathlib import Path
from typing import Callable, List, Optional

from ..config.harness_config import HarnessConfig
from ..harness.run_context import RunContext
from ..models.harness_models import BrowserIdentity, BrowserKind
from .playwright_integration import FULL_WINDOW_ARGS, DEFAULT_LAUNCH_ARGS, PlaywrightManager

logger = logging.getLogger(__name__)


class ScenarioBrowserProvisioner:
    """
    Launch the configured browsers for one scenario.

    Each browser gets its own context (viewport, optional video) and one page
    with tracing started. The identity recorded at each index is what the
    target resolver later uses as the browser's label.
    """

    def __init__(
        self,
        config: HarnessConfig,
        manager_factory: Callable[[], PlaywrightManager] = PlaywrightManager,
    ):
        self.config = config
        self.manager_factory = manager_factory

    async def provision(
        self, browsers: Optional[List[BrowserKind]] = None, run_dir: Optional[str] = None
    ) -> RunContext:
        """
        Launch browsers and build the scenario's run context.

        Args:
            browsers: Browsers to launch (defaults to the configured set)
            run_dir: Run results directory (videos go to ``<run_dir>/videos``)

        Returns:
            RunContext with index-aligned browsers, contexts, pages and identities

        Raises:
            RuntimeError: If any browser, context or page cannot be created
        """
        kinds = browsers if browsers is not None else self.config.browsers_to_run()
        run_context = RunContext(
            base_url=self.config.base_url,
            navigation_timeout_ms=self.config.timeout_ms,
            results_dir=run_dir,
        )

        manager = self.manager_factory()
        run_context.manager = manager

        try:
            await manager.initialize()
            run_context.playwright = manager.playwright

            args = list(DEFAULT_LAUNCH_ARGS)
            if self.config.use_full_window:
                args.extend(FULL_WINDOW_ARGS)

            viewport = None
            if not self.config.use_full_window:
                viewport = {"width": self.config.viewport_width, "height": self.config.viewport_height}

            video_dir = None
            if run_dir and self.config.record_video:
                video_dir = str(Path(run_dir) / "videos")

            for index, kind in enumerate(kinds):
                browser = await manager.launch_browser(
                    kind, headless=self.config.headless, slow_mo=self.config.slow_mo, args=args
                )
                context = await manager.create_context(
                    browser, viewport=viewport, record_video_dir=video_dir
                )
                page = await manager.create_page(context)
                page.set_default_navigation_timeout(self.config.timeout_ms)

                if self.config.record_trace:
                    await manager.start_tracing(context)

                run_context.add_target(BrowserIdentity(kind=kind, index=index), browser, context, page)
        except RuntimeError:
            await self.teardown(run_context)
            raise

        logger.info(f"Provisioned {len(run_context.pages)} browser(s): {[k.value for k in kinds]}")
        return run_context

    async def teardown(self, run_context: RunContext) -> None:
        """Close everything the scenario opened and clear the run context.

        Close failures are logged; teardown never raises.
        """
        manager = run_context.manager
        if manager is not None:
            try:
                await manager.cleanup()
            except RuntimeError as e:
                logger.warning(f"Browser teardown incomplete: {e}")

        run_context.clear()
        logger.debug("Run context cleared")
