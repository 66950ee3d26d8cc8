from __future__ import annotations

from dependency_injector import containers
from dependency_injector import providers

from consulta.config import Config
from consulta.service.injectors.recording import make_recording_controller


class ServiceContainer(containers.DeclarativeContainer):
    # Dependencies
    config = providers.Dependency(instance_of=Config)
    infrastructure = providers.DependenciesContainer()

    # Components
    recording = providers.Factory(
        make_recording_controller,
        config=config,
        diagnostics=infrastructure.diagnostics,
        gateway=infrastructure.gateway,
        capture=infrastructure.capture,
        recognition=infrastructure.recognition,
        notifier=infrastructure.notifier,
        visibility=infrastructure.visibility,
    )
