""" Exceptions raised by, and to, transaction handlers.

    A handler signals an outcome other than success by raising
    :class:`InvalidTransaction` or :class:`InternalError`. The state context
    raises :class:`InvalidAddress` and :class:`AuthorizationDenied` for
    rejected state access; transport failures such as
    :class:`~txproc.transport.base.TransportTimeout` and
    :class:`~txproc.transport.base.ConnectionLost` reach the handler as
    ordinary exceptions too.
"""


class _ExtendedError(Exception):

    def __init__(self, message='', extended_data=None):
        Exception.__init__(self, message)
        self.message = message
        self.extended_data = extended_data


class InvalidTransaction(_ExtendedError):
    """ The transaction is deterministically invalid; the validator should
        never retry it.
    """


class InternalError(_ExtendedError):
    """ Processing failed for environmental reasons; the transaction itself
        may well be valid, and the validator may retry it.
    """


class InvalidAddress(ValueError):
    """ A state address is malformed, or outside the namespaces the handler
        registered for writing. Raised locally, before any request is sent.
    """


class AuthorizationDenied(Exception):
    """ The validator refused a state access as outside the namespaces
        granted to this transaction.
    """


class UnhandledFamily(LookupError):
    """ No registered handler matches the family, version and encoding of
        an inbound transaction.
    """


class RegistrationRejected(Exception):
    """ The validator refused a handler registration. This is fatal for the
        connection attempt.
    """


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
