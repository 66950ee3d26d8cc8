from __future__ import annotations

from dependency_injector import containers
from dependency_injector import providers

from consulta.injectors.config import config
from consulta.injectors.lifespan import lifespan
from consulta.lib.injectors.container import InfrastructureContainer
from consulta.lib.recognition import RecognitionProvider
from consulta.service.injectors.container import ServiceContainer


class Container(containers.DeclarativeContainer):
    """Application container.

    The speech recognition capability comes from the UI shell and must be
    provided before anything that records is resolved:

    ```python
    container = Container(recognition=providers.Object(provider))
    async with container.lifespan():
        controller = container.service.recording()
    ```
    """

    # Configuration
    config = providers.Callable(config)

    # External capability
    recognition = providers.Dependency(instance_of=RecognitionProvider)

    # Containers
    infrastructure = providers.Container(
        InfrastructureContainer,
        config=config,
        recognition=recognition,
    )
    service = providers.Container(
        ServiceContainer,
        config=config,
        infrastructure=infrastructure,
    )

    # Lifespan
    lifespan = providers.Singleton(
        lifespan,
        config,
        infrastructure.diagnostics,
        infrastructure.sqlite,
        infrastructure.capture,
    )
