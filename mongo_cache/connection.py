"""Connection targets accepted by the MongoDB store.

A store can be built from a connection string, from an already connected
handle, or from structured options. Each mode is an explicit model; the
``kind`` field discriminates them. ``resolve_target`` turns whatever the
caller passed into exactly one of these.
"""

from typing import Annotated, Any, Literal, Optional, Union
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from mongo_cache.core.models import DEFAULT_DATABASE, MongoCacheConfig


class ConnectionString(BaseModel):
    """Connect using a ``mongodb://`` or ``mongodb+srv://`` URI."""

    kind: Literal["uri"] = "uri"
    uri: str


class ExistingHandle(BaseModel):
    """Reuse an ``AsyncDatabase`` or ``AsyncMongoClient`` the host already owns."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: Literal["handle"] = "handle"
    handle: Any


class ConnectionOptions(BaseModel):
    """Connect to a single host described field by field."""

    kind: Literal["options"] = "options"
    host: str = "127.0.0.1"
    port: int = Field(default=27017, ge=1, le=65535)
    database: str = DEFAULT_DATABASE
    username: Optional[str] = None
    password: Optional[str] = None


ConnectionTarget = Annotated[
    Union[ConnectionString, ExistingHandle, ConnectionOptions],
    Field(discriminator="kind"),
]

_target_adapter: TypeAdapter = TypeAdapter(ConnectionTarget)


def is_mongo_handle(obj: Any) -> bool:
    """Return True for objects that look like a database or client handle."""
    return callable(getattr(obj, "get_collection", None)) or callable(
        getattr(obj, "get_default_database", None)
    )


def format_uri(options: ConnectionOptions) -> str:
    """Render structured options as a MongoDB connection string.

    Credentials are percent-encoded.

    Example:
        >>> format_uri(ConnectionOptions(host="db", port=27018, database="c"))
        'mongodb://db:27018/c'
    """
    credentials = ""
    if options.username:
        credentials = quote_plus(options.username)
        if options.password is not None:
            credentials += ":" + quote_plus(options.password)
        credentials += "@"
    return f"mongodb://{credentials}{options.host}:{options.port}/{options.database}"


def resolve_target(
    target: Any,
    config: MongoCacheConfig,
) -> Union[ConnectionString, ExistingHandle, ConnectionOptions]:
    """Resolve a caller-supplied target into one connection mode.

    Args:
        target: A URI string, a database/client handle, an explicit
            connection model (or its dict form with a ``kind`` key), or
            None to fall back to ``config``
        config: Store configuration supplying ``client``, ``url`` and host fields

    Returns:
        The resolved connection target

    Raises:
        TypeError: If ``target`` is none of the supported forms
    """
    if isinstance(target, (ConnectionString, ExistingHandle, ConnectionOptions)):
        return target
    if isinstance(target, str):
        return ConnectionString(uri=target)
    if isinstance(target, dict):
        return _target_adapter.validate_python(target)
    if target is not None:
        if is_mongo_handle(target):
            return ExistingHandle(handle=target)
        raise TypeError(f"Unsupported connection target: {type(target).__name__}")

    if config.client is not None:
        return ExistingHandle(handle=config.client)
    if config.url:
        return ConnectionString(uri=config.url)
    return ConnectionOptions(
        host=config.host,
        port=config.port,
        database=config.database,
        username=config.username,
        password=config.password,
    )
