from __future__ import annotations

from dependency_injector import containers
from dependency_injector import providers

from consulta.config import Config
from consulta.lib.capability import CapabilityProbe
from consulta.lib.injectors.capture import make_capture
from consulta.lib.injectors.diagnostics import make_diagnostics
from consulta.lib.injectors.gateway import make_gateway
from consulta.lib.injectors.sqlite import make_sqlite
from consulta.lib.injectors.visibility import make_visibility
from consulta.lib.notification import LoggingNotifier
from consulta.lib.recognition import RecognitionProvider


class InfrastructureContainer(containers.DeclarativeContainer):
    # Dependencies
    config = providers.Dependency(instance_of=Config)
    recognition = providers.Dependency(instance_of=RecognitionProvider)

    # Components
    diagnostics = providers.Singleton(make_diagnostics, config=config)
    sqlite = providers.Singleton(make_sqlite, config=config)
    gateway = providers.Singleton(make_gateway, config=config, sqlite=sqlite)
    capture = providers.Singleton(make_capture, config=config, diagnostics=diagnostics)
    notifier = providers.Singleton(LoggingNotifier, diagnostics=diagnostics)
    visibility = providers.Singleton(make_visibility, config=config, diagnostics=diagnostics)
    probe = providers.Factory(
        CapabilityProbe,
        capture=capture,
        recognition=recognition,
        diagnostics=diagnostics,
    )
