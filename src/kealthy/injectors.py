from bevy import Container
from bevy.hooks import hooks
from tramp.optionals import Optional

from kealthy.config import Config, ConfigModel


@hooks.HANDLE_UNSUPPORTED_DEPENDENCY
def handle_config_model_types(container: Container, dependency: type, context: dict) -> Optional:
    try:
        if not issubclass(dependency, ConfigModel):
            return Optional.Nothing()
    except (TypeError, AttributeError):
        # Not a class
        return Optional.Nothing()

    config = container.get(Config)
    try:
        return Optional.Some(config.get(dependency.__model_key__, dependency))
    except KeyError:
        # Sections left out of the YAML fall back to the model's defaults
        return Optional.Some(dependency.from_dict({}))
