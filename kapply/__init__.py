"""
The main kapply module for all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the library's top-level interface,
# as it is seen by the users. So, we export the individual functions.

from kapply._cogs.clients.errors import (
    APIError,
    APIUnauthorizedError,
    APIForbiddenError,
    APINotFoundError,
    APIConflictError,
    check_response,
)
from kapply._cogs.configs.configuration import (
    ClientSettings,
    NamespacingSettings,
    WaitingSettings,
    DeletingSettings,
)
from kapply._cogs.helpers.typedefs import (
    Logger,
)
from kapply._cogs.helpers.versions import (
    version as __version__,
)
from kapply._cogs.structs.batches import (
    Manifest,
    Manifests,
    as_bodies,
    as_body,
    parse_manifests,
)
from kapply._cogs.structs.bodies import (
    Body,
    Meta,
    Spec,
    Status,
    RawBody,
    RawEvent,
    RawEventType,
    build_object_reference,
    build_owner_reference,
    thaw,
)
from kapply._cogs.structs.durations import (
    Backoff,
    TimeUnit,
)
from kapply._cogs.structs.readiness import (
    ReadinessNotSupportedError,
    is_ready,
)
from kapply._cogs.structs.references import (
    DeletionPropagation,
    Namespace,
    NamespaceName,
    ResourceKey,
)
from kapply._core.actions.loggers import (
    configure,
    LogFormat,
    ObjectLogger,
)
from kapply._core.actions.mutations import (
    Visitor,
)
from kapply._core.engines.waiting import (
    Verdict,
    WaitOutcome,
)
from kapply._core.intents.errors import (
    DeletionFailedError,
    HandlerNotFoundError,
    WaitTimeoutError,
)
from kapply._core.intents.handlers import (
    BaseResourceHandler,
    ListHandler,
    ListOptions,
    Predicate,
    ResourceHandler,
    Watch,
    Watcher,
)
from kapply._core.intents.registries import (
    HandlerRegistry,
    get_default_registry,
    set_default_registry,
    register,
)
from kapply._kits.operations import (
    Operation,
    OperationConfig,
    ResourceOperation,
    ResourceListOperation,
    resource,
    resource_list,
)
from kapply._kits.visitors import (
    annotated,
    in_namespace,
    labelled,
    named,
    owned_by,
)

__all__ = [
    'resource', 'resource_list',
    'Operation', 'OperationConfig', 'ResourceOperation', 'ResourceListOperation',
    'register', 'get_default_registry', 'set_default_registry', 'HandlerRegistry',
    'ResourceHandler', 'BaseResourceHandler', 'ListHandler',
    'Predicate', 'Watcher', 'Watch', 'ListOptions',
    'Visitor', 'labelled', 'annotated', 'named', 'in_namespace', 'owned_by',
    'configure', 'LogFormat', 'ObjectLogger', 'Logger',
    'ClientSettings', 'NamespacingSettings', 'WaitingSettings', 'DeletingSettings',
    'Body', 'Meta', 'Spec', 'Status', 'RawBody', 'RawEvent', 'RawEventType', 'thaw',
    'build_object_reference', 'build_owner_reference',
    'Manifest', 'Manifests', 'as_body', 'as_bodies', 'parse_manifests',
    'Backoff', 'TimeUnit',
    'DeletionPropagation', 'Namespace', 'NamespaceName', 'ResourceKey',
    'is_ready', 'Verdict', 'WaitOutcome',
    'HandlerNotFoundError', 'DeletionFailedError', 'WaitTimeoutError',
    'ReadinessNotSupportedError',
    'APIError', 'APIUnauthorizedError', 'APIForbiddenError',
    'APINotFoundError', 'APIConflictError', 'check_response',
    '__version__',
]
