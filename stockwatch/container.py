"""
Dependency Injection Container.

Este módulo proporciona el contenedor de inyección de dependencias
que gestiona todas las instancias de servicios, repositorios y casos de uso.

Clean Architecture: Este contenedor vive en la capa más externa y es el único
lugar donde se crean dependencias concretas.

Con `db_enabled=True` los repositorios son SQLAlchemy (MySQL); si no,
implementaciones en memoria (desarrollo y tests).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

# Domain
from stockwatch.domain.repositories.alert_log_repository import IAlertLogRepository
from stockwatch.domain.repositories.alert_repository import IAlertRepository
from stockwatch.domain.repositories.watchlist_repository import (
    ISymbolRepository,
    IWatchlistRepository,
)
from stockwatch.domain.services.condition_evaluator import ConditionEvaluator
from stockwatch.domain.services.indicator_calculator import IndicatorCalculator

# Application Ports
from stockwatch.application.ports.candle_source import ICandleSource
from stockwatch.application.ports.event_publisher import IEventPublisher
from stockwatch.application.ports.notification_sink import INotificationSink

# Shared
from stockwatch.shared.config.settings import Settings


@dataclass
class Container:
    """
    Contenedor de Inyección de Dependencias.

    Gestiona el ciclo de vida de todas las dependencias de la aplicación.
    Todas las propiedades son lazy y singleton dentro del contenedor.
    """

    # Configuración
    settings: Settings = field(default_factory=Settings)

    # Repositorios (implementaciones concretas)
    _db_manager: Optional[Any] = None
    _alert_repository: Optional[IAlertRepository] = None
    _alert_log_repository: Optional[IAlertLogRepository] = None
    _watchlist_repository: Optional[IWatchlistRepository] = None
    _symbol_repository: Optional[ISymbolRepository] = None
    _candle_source: Optional[ICandleSource] = None

    # Ports
    _event_publisher: Optional[IEventPublisher] = None
    _notification_sink: Optional[INotificationSink] = None

    # Domain Services (stateless, se pueden compartir)
    _indicator_calculator: Optional[IndicatorCalculator] = None
    _condition_evaluator: Optional[ConditionEvaluator] = None

    # Application
    _indicator_engine: Optional[Any] = None
    _snapshot_store: Optional[Any] = None
    _snapshot_history: Optional[Any] = None
    _state_machine: Optional[Any] = None
    _evaluate_usecase: Optional[Any] = None
    _purge_usecase: Optional[Any] = None
    _scheduler: Optional[Any] = None

    # Cache de instancias
    _instances: Dict[str, Any] = field(default_factory=dict)

    # ==================== Domain Services ====================

    @property
    def indicator_calculator(self) -> IndicatorCalculator:
        if self._indicator_calculator is None:
            self._indicator_calculator = IndicatorCalculator()
        return self._indicator_calculator

    @property
    def condition_evaluator(self) -> ConditionEvaluator:
        if self._condition_evaluator is None:
            self._condition_evaluator = ConditionEvaluator()
        return self._condition_evaluator

    # ==================== Repositories ====================

    @property
    def db_manager(self):
        """DatabaseManager (solo con db_enabled)."""
        if self._db_manager is None:
            from stockwatch.infrastructure.persistence.database import DatabaseManager
            self._db_manager = DatabaseManager(self.settings)
        return self._db_manager

    def _build_memory_repositories(self) -> None:
        from stockwatch.infrastructure.memory import (
            InMemoryAlertLogRepository,
            InMemoryAlertRepository,
            InMemoryCandleSource,
            InMemorySymbolRepository,
            InMemoryWatchlistRepository,
        )
        if self._alert_log_repository is None:
            self._alert_log_repository = InMemoryAlertLogRepository()
        if self._alert_repository is None:
            # Comparten almacén: record_fire hace append en el mismo repo de logs
            self._alert_repository = InMemoryAlertRepository(self._alert_log_repository)
        if self._watchlist_repository is None:
            self._watchlist_repository = InMemoryWatchlistRepository()
        if self._symbol_repository is None:
            self._symbol_repository = InMemorySymbolRepository()
        if self._candle_source is None:
            self._candle_source = InMemoryCandleSource()

    def _build_sql_repositories(self) -> None:
        # Import aquí para evitar dependencia circular
        from stockwatch.infrastructure.persistence.repositories import (
            AlertLogRepositoryImpl,
            AlertRepositoryImpl,
            CandleRepositoryImpl,
            SymbolRepositoryImpl,
            WatchlistRepositoryImpl,
        )
        db = self.db_manager
        if self._alert_repository is None:
            self._alert_repository = AlertRepositoryImpl(db)
        if self._alert_log_repository is None:
            self._alert_log_repository = AlertLogRepositoryImpl(db)
        if self._watchlist_repository is None:
            self._watchlist_repository = WatchlistRepositoryImpl(db)
        if self._symbol_repository is None:
            self._symbol_repository = SymbolRepositoryImpl(db)
        if self._candle_source is None:
            self._candle_source = CandleRepositoryImpl(db)

    def _ensure_repositories(self) -> None:
        if self.settings.db_enabled:
            self._build_sql_repositories()
        else:
            self._build_memory_repositories()

    @property
    def alert_repository(self) -> IAlertRepository:
        if self._alert_repository is None:
            self._ensure_repositories()
        return self._alert_repository

    @property
    def alert_log_repository(self) -> IAlertLogRepository:
        if self._alert_log_repository is None:
            self._ensure_repositories()
        return self._alert_log_repository

    @property
    def watchlist_repository(self) -> IWatchlistRepository:
        if self._watchlist_repository is None:
            self._ensure_repositories()
        return self._watchlist_repository

    @property
    def symbol_repository(self) -> ISymbolRepository:
        if self._symbol_repository is None:
            self._ensure_repositories()
        return self._symbol_repository

    @property
    def candle_source(self) -> ICandleSource:
        if self._candle_source is None:
            self._ensure_repositories()
        return self._candle_source

    # ==================== Ports ====================

    @property
    def event_publisher(self) -> IEventPublisher:
        if self._event_publisher is None:
            from stockwatch.infrastructure.external.event_bus import EventBus
            self._event_publisher = EventBus(max_queue_size=self.settings.event_bus_max_queue_size)
        return self._event_publisher

    @property
    def notification_sink(self) -> INotificationSink:
        if self._notification_sink is None:
            from stockwatch.infrastructure.external.notification_sinks import EventBusNotificationSink
            self._notification_sink = EventBusNotificationSink(self.event_publisher)
        return self._notification_sink

    # ==================== Application ====================

    @property
    def indicator_engine(self):
        if self._indicator_engine is None:
            from stockwatch.application.services.indicator_engine import IndicatorEngine
            s = self.settings
            self._indicator_engine = IndicatorEngine(
                candle_source=self.candle_source,
                calculator=self.indicator_calculator,
                window_size=s.candle_window_size,
                min_candles=s.min_candles,
                lookback_factor=s.candle_lookback_factor,
                fetch_timeout=s.candle_fetch_timeout_seconds,
            )
        return self._indicator_engine

    @property
    def snapshot_store(self):
        if self._snapshot_store is None:
            from stockwatch.application.state.snapshot_state import SnapshotStore
            self._snapshot_store = SnapshotStore()
        return self._snapshot_store

    @property
    def snapshot_history(self):
        if self._snapshot_history is None:
            from stockwatch.application.state.snapshot_state import SnapshotHistory
            self._snapshot_history = SnapshotHistory()
        return self._snapshot_history

    @property
    def state_machine(self):
        if self._state_machine is None:
            from stockwatch.application.services.alert_state_machine import AlertStateMachine
            self._state_machine = AlertStateMachine(
                alert_repository=self.alert_repository,
                alert_log_repository=self.alert_log_repository,
                notification_sink=self.notification_sink,
                history=self.snapshot_history,
                symbol_repository=self.symbol_repository,
                notification_timeout=self.settings.notification_timeout_seconds,
            )
        return self._state_machine

    @property
    def evaluate_usecase(self):
        if self._evaluate_usecase is None:
            from stockwatch.application.use_cases.evaluate_symbol_usecase import EvaluateSymbolUseCase
            self._evaluate_usecase = EvaluateSymbolUseCase(
                alert_repository=self.alert_repository,
                engine=self.indicator_engine,
                evaluator=self.condition_evaluator,
                state_machine=self.state_machine,
                history=self.snapshot_history,
                store=self.snapshot_store,
            )
        return self._evaluate_usecase

    @property
    def purge_usecase(self):
        if self._purge_usecase is None:
            from stockwatch.application.use_cases.purge_alert_logs_usecase import PurgeAlertLogsUseCase
            self._purge_usecase = PurgeAlertLogsUseCase(
                self.alert_log_repository,
                retention_days=self.settings.alert_log_retention_days,
            )
        return self._purge_usecase

    @property
    def scheduler(self):
        if self._scheduler is None:
            from stockwatch.application.services.alert_scheduler import AlertScheduler
            s = self.settings
            self._scheduler = AlertScheduler(
                alert_repository=self.alert_repository,
                watchlist_repository=self.watchlist_repository,
                engine=self.indicator_engine,
                evaluate_usecase=self.evaluate_usecase,
                history=self.snapshot_history,
                purge_usecase=self.purge_usecase,
                interval_seconds=s.scheduler_interval_seconds,
                max_workers=s.scheduler_max_workers,
                default_timeframe=s.default_timeframe,
                retention_interval_hours=s.retention_check_interval_hours,
                locks=self.state_machine.locks,
            )
        return self._scheduler

    # ==================== Lifecycle ====================

    def reset(self) -> None:
        """Resetea todas las instancias (útil para tests)."""
        for name in list(vars(self)):
            if name.startswith("_") and name != "_instances":
                setattr(self, name, None)
        self._instances.clear()

    def override(self, name: str, instance: Any) -> None:
        """
        Override una dependencia (útil para tests con fakes).

        Args:
            name: Nombre de la dependencia (ej: 'notification_sink')
            instance: Instancia a usar
        """
        attr_name = f"_{name}"
        if hasattr(self, attr_name):
            setattr(self, attr_name, instance)
        else:
            raise ValueError(f"Unknown dependency: {name}")


# ==================== Global Container ====================

_container: Optional[Container] = None


def init_container(settings: Optional[Settings] = None) -> Container:
    """Inicializa el contenedor global con configuración específica."""
    global _container
    if settings is None:
        settings = Settings()
    _container = Container(settings=settings)
    return _container


def create_test_container(**overrides: Any) -> Container:
    """
    Contenedor en memoria, sin scheduler automático.

    Args:
        **overrides: campos de Settings a sobrescribir
    """
    values = {"db_enabled": False, "scheduler_enabled": False}
    values.update(overrides)
    return Container(settings=Settings(**values))
