from . import exceptions
from . import handler
from . import context
from . import dispatcher
from . import core

from .context import Context
from .core import State, TransactionProcessor
from .exceptions import (
    AuthorizationDenied,
    InternalError,
    InvalidAddress,
    InvalidTransaction,
    RegistrationRejected,
    UnhandledFamily,
)
from .handler import HandlerRegistration, HandlerRegistry, TransactionHandler

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
