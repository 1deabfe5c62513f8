from __future__ import annotations

import logging
from dataclasses import dataclass

from divtrack.config import CacheConfig, Settings, load_settings, projection_config
from divtrack.data.enhanced import EnhancedStockService
from divtrack.data.local import LocalStockService
from divtrack.data.repository import StockRepository
from divtrack.planning.goal import GoalCalculator
from divtrack.portfolio.book import PortfolioBook
from divtrack.portfolio.manager import PortfolioManager
from divtrack.portfolio.report import ReportService
from divtrack.storage.cache import DataCacheManager, StockPriceCache
from divtrack.storage.store import DataStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    store: DataStore
    market: EnhancedStockService
    manager: PortfolioManager
    book: PortfolioBook
    reports: ReportService
    goals: GoalCalculator
    data_cache: DataCacheManager


def build_services(settings: Settings | None = None) -> Services:
    """Wire the store, market data and portfolio services from settings."""
    settings = settings or load_settings()
    store = DataStore(settings.store_dir)

    local = LocalStockService(store)
    repository = StockRepository(settings, local=local)
    market = EnhancedStockService(repository)
    manager = PortfolioManager(market, StockPriceCache(CacheConfig().price_cache_max_size))

    services = Services(
        settings=settings,
        store=store,
        market=market,
        manager=manager,
        book=PortfolioBook(store, repository, manager),
        reports=ReportService(manager),
        goals=GoalCalculator(projection_config(settings)),
        data_cache=DataCacheManager(store),
    )
    refresh_if_stale(services)
    return services


def refresh_if_stale(services: Services) -> bool:
    """Once per day: drop old per-day price caches and record the refresh."""
    if not services.data_cache.should_update():
        return False
    removed = services.market.local.clean_old_price_cache()
    services.data_cache.mark_updated()
    logger.debug("Daily refresh done; %d stale price cache(s) removed", removed)
    return True
