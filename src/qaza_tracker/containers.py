"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from qaza_tracker.adapters.hijri_api_client import HttpxHijriApiClient
from qaza_tracker.adapters.supabase_achievement_notifier import (
    SupabaseAchievementNotifier,
)
from qaza_tracker.adapters.supabase_calendar_repository import (
    SupabaseCalendarRepository,
)
from qaza_tracker.adapters.supabase_debt_repository import SupabaseDebtRepository
from qaza_tracker.config import Settings
from qaza_tracker.services.cache import InMemoryCache
from qaza_tracker.services.calendar_conversion import (
    ArithmeticHijriConverter,
    AuthorityHijriConverter,
    FallbackHijriConverter,
    HijriConverter,
)
from qaza_tracker.services.debt import DebtCalculator
from qaza_tracker.services.materializer import CalendarMaterializer
from qaza_tracker.services.onset import OnsetDateResolver
from qaza_tracker.services.periods import PeriodValidator
from qaza_tracker.services.progress import ProgressTracker
from qaza_tracker.services.qaza import QazaService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    hijri_converter: HijriConverter
    qaza_service: QazaService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    debt_repository = SupabaseDebtRepository(supabase_client)
    calendar_repository = SupabaseCalendarRepository(supabase_client)
    notifier = SupabaseAchievementNotifier(supabase_client)

    hijri_client: HttpxHijriApiClient | None = None
    primary: HijriConverter | None = None
    if resolved_settings.hijri_api_base_url:
        hijri_client = HttpxHijriApiClient.create(
            base_url=resolved_settings.hijri_api_base_url,
            api_key=resolved_settings.hijri_api_key,
            timeout_seconds=resolved_settings.hijri_api_timeout_seconds,
        )
        primary = AuthorityHijriConverter(hijri_client)
    hijri_converter = FallbackHijriConverter(
        primary=primary,
        fallback=ArithmeticHijriConverter(),
        cache=InMemoryCache(),
        cache_ttl_seconds=resolved_settings.hijri_cache_ttl_seconds,
    )
    calculator = DebtCalculator(
        onset_resolver=OnsetDateResolver(hijri_converter),
        period_validator=PeriodValidator(),
    )
    materializer = CalendarMaterializer(
        repository=calendar_repository,
        chunk_size=resolved_settings.calendar_chunk_size,
    )
    progress_tracker = ProgressTracker(
        debt_repository=debt_repository,
        calendar_repository=calendar_repository,
        notifier=notifier,
    )
    qaza_service = QazaService(
        calculator=calculator,
        debt_repository=debt_repository,
        materializer=materializer,
        progress_tracker=progress_tracker,
    )

    async def close_resources() -> None:
        if hijri_client is not None:
            await hijri_client.close()

    return AppContainer(
        settings=resolved_settings,
        hijri_converter=hijri_converter,
        qaza_service=qaza_service,
        close_resources=close_resources,
    )
