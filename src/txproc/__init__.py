""" Python client runtime for transaction processors: out-of-process
    handlers that execute the business logic of a transaction family on
    behalf of a blockchain validator.
"""

# Utility components.

from . import json
from . import config

# Submodules used by multiple other components.

from . import protocol
from . import transport

# Primary public-facing interfaces.

from . import processor
from . import signing

from .config import Configuration
from .processor import (
    AuthorizationDenied,
    Context,
    InternalError,
    InvalidAddress,
    InvalidTransaction,
    TransactionHandler,
    TransactionProcessor,
)

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
