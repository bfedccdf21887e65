"""
Read and write configuration file.

The settings provide the defaults used by model links that do not
specify their own model parameters, and the retry and formatting
defaults used when executing a chain. This file also contains the
definitions of the model sources supported by the package.
"""

from pathlib import Path
from typing import Any, Literal, Self

from pydantic import (
    Field,
    field_validator,
    model_validator,
    BaseModel,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

# Define supported model sources. These sources must also be handled
# in lmchain/providers/langchain/models.py
ModelSource = Literal[
    'OpenAI', 'Anthropic', 'Mistral', 'Gemini', 'Debug'
]

ProviderParam = str | int | float | bool

DEFAULT_CONFIG_FILE = "config.toml"
ENV_PREFIX = "LMCHAIN_"


def check_model_spec(spec: str) -> str:
    cleaned_spec = spec.strip()
    if not (bool(cleaned_spec)):
        raise ValueError("Model specification is empty")
    if '\n' in cleaned_spec or '\r' in cleaned_spec:
        raise ValueError(
            "Model specification cannot contain newlines or carriage"
            + " returns."
        )
    tokens = cleaned_spec.split('/')
    if len(tokens) != 2:
        raise ValueError(
            "Model specification must contain the model provider and "
            + "the model name separated by a single '/'.",
        )
    model_source = tokens[0].strip()
    if model_source not in ModelSource.__args__:
        raise ValueError(
            f"Invalid model provider: '{model_source}'. "
            + f"Must be one of {ModelSource.__args__}."
        )
    return model_source + '/' + tokens[1].strip()


class LanguageModelSettings(BaseModel):
    """
    Specification of the language model called by model links.

    Attributes:
        model: model specification, 'source/model'
        temperature: float between 0.0 and 2.0
        top_p: nucleus sampling parameter between 0.0 and 1.0
        max_tokens: max number of generated tokens
        max_retries: retries of the provider client itself. Retries
            of a model link are counted by the chain, see ChainSettings
        timeout: timeout when waiting for response
        provider_params: provider-specific parameters
    """

    model: str = Field(
        default="OpenAI/gpt-4o-mini",
        description="Model specification in the form "
        + "'model_provider/model' (e.g., 'OpenAI/gpt-4o')",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Controls randomness in model responses (0.0-2.0)",
    )
    top_p: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Nucleus sampling probability mass (0.0-1.0)",
    )
    max_tokens: int | None = Field(
        default=None,
        ge=1,
        description="Maximum number of tokens to generate",
    )
    max_retries: int = Field(
        default=0,
        ge=0,
        description="Retry attempts of the provider client",
    )
    timeout: float | None = Field(
        default=None, gt=0, description="Request timeout in seconds"
    )
    provider_params: dict[str, ProviderParam] = Field(
        default_factory=dict,
        description="Provider-specific parameters (e.g., seed for OpenAI)",
    )

    model_config = SettingsConfigDict(frozen=True, extra='forbid')

    def __hash__(self) -> int:
        # provider_params is a dict, hash it as a sorted tuple
        provider_params_tuple = tuple(
            sorted(self.provider_params.items())
        )
        return hash(
            (
                self.model,
                self.temperature,
                self.top_p,
                self.max_tokens,
                self.max_retries,
                self.timeout,
                provider_params_tuple,
            )
        )

    def get_model_source(self) -> ModelSource:
        return self.model.split('/')[0]  # type: ignore

    def get_model_name(self) -> str:
        return self.model.split('/')[1]

    def from_instance(
        self,
        model: str | None = None,
        temperature: float | None = None,
        top_p: float | None = None,
        max_tokens: int | None = None,
        max_retries: int | None = None,
        timeout: float | None = None,
        provider_params: dict[str, ProviderParam] | None = None,
    ) -> 'LanguageModelSettings':
        """A copy of these settings, with the given fields replaced."""
        return LanguageModelSettings(
            model=model if model is not None else self.model,
            temperature=(
                temperature
                if temperature is not None
                else self.temperature
            ),
            top_p=top_p if top_p is not None else self.top_p,
            max_tokens=(
                max_tokens
                if max_tokens is not None
                else self.max_tokens
            ),
            max_retries=(
                max_retries
                if max_retries is not None
                else self.max_retries
            ),
            timeout=timeout if timeout is not None else self.timeout,
            provider_params=(
                provider_params
                if provider_params is not None
                else self.provider_params
            ),
        )

    @field_validator('model', mode='after')
    @classmethod
    def validate_model_spec(cls, spec: str) -> str:
        return check_model_spec(spec)

    @model_validator(mode='after')
    def validate_provider_params(self) -> Self:
        """Validate provider-specific parameters based on the source."""
        params = self.provider_params

        # top_p has its own field and is not repeated here
        ALLOWED_PARAMS = {
            'OpenAI': {
                'frequency_penalty',
                'presence_penalty',
                'seed',
                'logprobs',
                'top_logprobs',
            },
            'Anthropic': {'top_k', 'stop_sequences'},
            'Mistral': {'random_seed', 'safe_mode'},
            'Gemini': {'top_k', 'candidate_count'},
        }

        source: ModelSource = self.get_model_source()
        if source in ALLOWED_PARAMS:
            allowed = ALLOWED_PARAMS[source]
            invalid_params = set(params.keys()) - allowed

            if invalid_params:
                raise ValueError(
                    f"Invalid provider_params for {source}: "
                    f"{invalid_params}. Allowed: {allowed}"
                )

        return self


class ChainSettings(BaseModel):
    """
    Defaults applied when executing a chain.

    Attributes:
        retries: attempts made for each model link, unless the link
            or the chain configuration say otherwise
        auto_newline_content: join content blocks with newlines
            (otherwise, with a space)
        remove_double_spaces: collapse whitespace runs in content built
            from blocks
    """

    retries: int = Field(
        default=3,
        ge=1,
        description="Attempts made to call the model for each link",
    )
    auto_newline_content: bool = Field(
        default=True,
        description="Join content blocks with a newline",
    )
    remove_double_spaces: bool = Field(
        default=True,
        description="Collapse runs of whitespace in built content",
    )

    model_config = SettingsConfigDict(frozen=True, extra='forbid')


class Settings(BaseSettings):
    """
    A pydantic settings object containing the fields with the
    configuration information.

    Settings are saved and read from the configuration file in TOML
    format, and may be overridden by LMCHAIN_ environment variables.

    Attributes:
        model: default language model for model links
        chain: defaults for chain execution
    """

    model: LanguageModelSettings = Field(
        default_factory=LanguageModelSettings,
        description="Default language model of model links",
    )
    chain: ChainSettings = Field(
        default_factory=ChainSettings,
        description="Defaults for chain execution",
    )

    model_config = SettingsConfigDict(
        toml_file=DEFAULT_CONFIG_FILE,
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        frozen=True,
        validate_assignment=True,
        extra='forbid',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the order of settings sources."""
        return (
            init_settings,
            TomlConfigSettingsSource(settings_cls),
            env_settings,
        )

    def __str__(self) -> str:
        return serialize_settings(self)


def serialize_settings(sets: BaseSettings) -> str:
    """Transform the settings into a string in TOML format.

    Args:
        sets: The settings object to serialize

    Returns:
        TOML formatted string representation of settings
    """
    import tomlkit

    doc = tomlkit.document()
    doc.add(tomlkit.comment("Configuration file"))
    doc.add(tomlkit.nl())

    data: dict[str, Any] = sets.model_dump()
    for key, value in data.items():
        if isinstance(value, dict):
            tbl = tomlkit.table()
            for kkey, vvalue in value.items():  # type: ignore
                # None values cannot be serialized to TOML
                if vvalue is not None:
                    tbl[kkey] = vvalue
            doc[key] = tbl
        elif value is not None:
            doc[key] = value

    return str(tomlkit.dumps(doc))  # type: ignore


def export_settings(
    settings: BaseSettings, file_path: str | Path | None = None
) -> None:
    """Save settings to file in TOML format.

    Args:
        settings: A settings object to save
        file_path: The settings file path (defaults to config.toml)

    Raises:
        OSError: If file cannot be written
    """
    if file_path is None:
        file_path = DEFAULT_CONFIG_FILE

    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    with file_path.open("w", encoding="utf-8") as f:
        f.write(serialize_settings(settings))


def create_default_config_file(
    file_path: str | Path | None = None,
) -> None:
    """Create a settings file with the default values, replacing any
    existing file.

    Example:
        ```python
        # creates config.toml in the working directory
        create_default_config_file()
        ```
    """
    if file_path is None:
        file_path = DEFAULT_CONFIG_FILE

    file_path = Path(file_path)

    if file_path.exists():
        # otherwise, it will be read in
        file_path.unlink()

    export_settings(Settings(), file_path)


def load_settings(file_path: str | Path | None = None) -> Settings:
    """Load settings from TOML file.

    Args:
        file_path: Path to settings file (defaults to config.toml)

    Returns:
        Loaded settings object

    Raises:
        FileNotFoundError: If settings file doesn't exist
        ValueError: If settings file is invalid
    """
    if file_path is None:
        file_path = DEFAULT_CONFIG_FILE

    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(
            f"Settings file not found: {file_path}"
        )

    try:

        class FileSettings(Settings):
            model_config = SettingsConfigDict(
                toml_file=str(file_path),
                env_prefix=ENV_PREFIX,
                env_nested_delimiter="__",
                frozen=True,
                validate_assignment=True,
                extra='forbid',
            )

        return FileSettings()
    except Exception as e:
        raise ValueError(
            f"Failed to load settings from {file_path}: {e}"
        ) from e


def format_pydantic_error_message(error_message: str) -> str:
    """Filter out verbose lines from pydantic error messages."""
    lines = error_message.split('\n')
    filtered_lines = [
        line
        for line in lines
        if "For further information visit" not in line
    ]
    return '\n'.join(filtered_lines)
