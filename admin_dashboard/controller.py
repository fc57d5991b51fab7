"""Page controller owning the dashboard view state and the aggregation cycle."""
import logging
import time
from datetime import datetime, tzinfo
from typing import Callable, Optional
from zoneinfo import ZoneInfo
from admin_dashboard.aggregator import compute
from admin_dashboard.config import Settings
from admin_dashboard.presentation import to_display
from admin_dashboard.routes.metrics import dashboard_refresh_latency_ms, dashboard_refresh_total
from admin_dashboard.schemas import DashboardView
from admin_dashboard.sources import DataSource, UnconfiguredDataSource, build_data_source

logger = logging.getLogger(__name__)

ERROR_MESSAGE = "Failed to load dashboard data. Please try again."


class DashboardController:
    """
    Runs fetch, aggregate and publish cycles for the admin page.

    Each cycle takes a new generation number when it starts. A cycle that
    is no longer the latest once its queries return leaves the view alone,
    so overlapping refreshes always publish the newest result.
    """

    def __init__(
        self,
        source: DataSource,
        tz: Optional[tzinfo] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.source = source
        self.tz = tz
        self._clock = clock or (lambda: datetime.now(tz))
        self._generation = 0
        self.view = DashboardView()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def started(self) -> bool:
        """True once any cycle has been started."""
        return self._generation > 0

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _superseded(self, generation: int) -> DashboardView:
        logger.info(
            "Aggregation cycle superseded",
            extra={"generation": generation, "result": "superseded", "source": self.source.name},
        )
        dashboard_refresh_total.labels(result="superseded").inc()
        return self.view

    async def refresh(self) -> DashboardView:
        """Fetch all records and the user count, aggregate, and publish a new view."""
        self._generation += 1
        generation = self._generation
        now = self._clock()
        start_time = time.time()

        self.view = self.view.model_copy(update={"loading": True})
        logger.info(
            "Aggregation cycle started",
            extra={"generation": generation, "source": self.source.name},
        )

        try:
            records = await self.source.fetch_messages()
            user_total = await self.source.count_users()
        except Exception:
            # every failure shows the same banner
            if not self._is_current(generation):
                return self._superseded(generation)
            logger.exception(
                "Error fetching dashboard data",
                extra={"generation": generation, "result": "error", "source": self.source.name},
            )
            dashboard_refresh_total.labels(result="error").inc()
            self.view = self.view.model_copy(update={"loading": False, "error": ERROR_MESSAGE})
            return self.view

        if not self._is_current(generation):
            return self._superseded(generation)

        stats, daily = compute(records, user_total, now)
        self.view = DashboardView(
            stats=stats,
            daily_stats=daily,
            messages=to_display(records, now.tzinfo),
            loading=False,
            error=None,
            generated_at=now,
        )

        latency_ms = int((time.time() - start_time) * 1000)
        dashboard_refresh_latency_ms.observe(latency_ms)
        dashboard_refresh_total.labels(result="ok").inc()
        logger.info(
            "Aggregation cycle published",
            extra={
                "generation": generation,
                "result": "ok",
                "source": self.source.name,
                "total_messages": stats.total_messages,
                "latency_ms": latency_ms,
            },
        )
        return self.view

    async def close(self) -> None:
        """Release the data source; the view is dropped with the controller."""
        await self.source.close()


def build_controller(settings: Settings) -> DashboardController:
    """
    Controller over the configured data source and dashboard time zone.

    A data source that cannot be built is replaced by one that always fails,
    so the page shows the error banner instead of a server error.
    """
    tz = ZoneInfo(settings.dashboard_timezone) if settings.dashboard_timezone else None
    try:
        source = build_data_source(settings)
    except ValueError as e:
        logger.error("Data source not built: %s", e, extra={"source": settings.data_source})
        source = UnconfiguredDataSource(str(e))
    return DashboardController(source, tz=tz)
