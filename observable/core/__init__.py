"""Observer registry and transactional notification dispatch."""

from observable.core.actions import LIST_ORDER, Action
from observable.core.dispatcher import DATA_STEP, NotificationDispatcher
from observable.core.handles import (
    FunctionHandle,
    NamedHandle,
    NotificationContext,
    Observer,
    ObserverHandle,
    as_handle,
)
from observable.core.registry import ObserverRegistry
from observable.core.results import Error, Ok, TransactionFailure
from observable.core.unit_of_work import UnitOfWork

__all__ = [
    "Action",
    "LIST_ORDER",
    "DATA_STEP",
    "NotificationDispatcher",
    "FunctionHandle",
    "NamedHandle",
    "NotificationContext",
    "Observer",
    "ObserverHandle",
    "as_handle",
    "ObserverRegistry",
    "Ok",
    "Error",
    "TransactionFailure",
    "UnitOfWork",
]
