""" The contract implemented by user-supplied transaction family handlers,
    and the registry mapping each (family, version) pair to its handler.
"""

import abc
import dataclasses
import re
import threading

from .exceptions import UnhandledFamily


_namespace = re.compile('^[0-9a-f]{1,70}$')


class TransactionHandler(abc.ABC):
    """ Subclass :class:`TransactionHandler` to implement the business logic
        of a transaction family. The *family_name*, *family_versions* and
        *namespaces* properties describe what the handler registers for; the
        :func:`apply` method is invoked once per inbound transaction, from a
        worker thread, possibly concurrently with other invocations.

        :func:`apply` signals success by returning normally. It signals
        failure by raising :class:`~txproc.processor.exceptions.InvalidTransaction`
        or :class:`~txproc.processor.exceptions.InternalError`; any other
        exception is reported to the validator as an internal error.
    """

    @property
    @abc.abstractmethod
    def family_name(self):
        pass


    @property
    @abc.abstractmethod
    def family_versions(self):
        pass


    @property
    @abc.abstractmethod
    def namespaces(self):
        pass


    @property
    def encodings(self):
        """ Payload encodings accepted by this handler. The default, an empty
            tuple, accepts any encoding.
        """

        return ()


    @abc.abstractmethod
    def apply(self, transaction, context):
        """ Apply the *transaction* (a :class:`~txproc.protocol.payload.TpProcessRequest`)
            using the *context* (a :class:`~txproc.processor.context.Context`)
            for all state access.
        """


# end of class TransactionHandler



@dataclasses.dataclass(frozen=True)
class HandlerRegistration:
    """ What a handler declared at startup: its family name, the versions it
        implements, and the namespace prefixes it may write. This snapshot,
        not the handler's live properties, bounds every write made on the
        handler's behalf.
    """

    family_name: str
    family_versions: frozenset
    namespaces: frozenset
    encodings: frozenset = frozenset()
    handler: object = dataclasses.field(default=None, compare=False, repr=False)


# end of class HandlerRegistration



class HandlerRegistry:
    """ The set of handlers known to a processor. Handlers may only be added
        before the registry is frozen, which happens when the processor first
        connects; re-registration requires a fresh processor.
    """

    def __init__(self):

        self._handlers = dict()
        self._registrations = list()
        self._lock = threading.Lock()
        self.frozen = False


    def __len__(self):
        return len(self._registrations)


    def __iter__(self):
        return iter(tuple(self._registrations))


    def add(self, handler):

        registration = describe(handler)

        self._lock.acquire()
        try:
            if self.frozen:
                raise RuntimeError('handlers cannot be added once the processor has connected')

            for version in registration.family_versions:
                key = (registration.family_name, version)
                if key in self._handlers:
                    raise ValueError('duplicate handler for %s %s' % key)

            for version in registration.family_versions:
                self._handlers[(registration.family_name, version)] = registration

            self._registrations.append(registration)
        finally:
            self._lock.release()

        return registration


    def freeze(self):
        self.frozen = True


    def find(self, family_name, family_version, encoding=''):
        """ Return the :class:`HandlerRegistration` for *family_name* and
            *family_version*, raising :class:`UnhandledFamily` if there is
            none, or if the handler does not accept the payload *encoding*.
        """

        try:
            registration = self._handlers[(family_name, family_version)]
        except KeyError:
            raise UnhandledFamily('no handler for %s %s' % (family_name, family_version))

        if registration.encodings and encoding and encoding not in registration.encodings:
            raise UnhandledFamily('%s %s does not accept encoding %s' % (family_name, family_version, encoding))

        return registration


    def requests(self):
        """ Yield a (family, version, namespaces) tuple for every registration
            request the processor must send, in a stable order.
        """

        for registration in self._registrations:
            namespaces = sorted(registration.namespaces)
            for version in sorted(registration.family_versions):
                yield (registration.family_name, version, namespaces)


# end of class HandlerRegistry



def describe(handler):
    """ Validate the declarations of a :class:`TransactionHandler` and return
        the corresponding :class:`HandlerRegistration`.
    """

    family_name = handler.family_name
    if not isinstance(family_name, str) or family_name == '':
        raise ValueError('handler family name must be a non-empty string: %r' % (family_name,))

    for declared in (handler.family_versions, handler.namespaces, handler.encodings):
        if isinstance(declared, str):
            raise ValueError("handler for '%s' must declare a collection, not a string: %r" % (family_name, declared))

    versions = frozenset(handler.family_versions)
    if len(versions) == 0:
        raise ValueError("handler for '%s' declares no versions" % (family_name))

    for version in versions:
        if not isinstance(version, str) or version == '':
            raise ValueError("handler for '%s' has an invalid version: %r" % (family_name, version))

    namespaces = frozenset(handler.namespaces)
    for namespace in namespaces:
        if not isinstance(namespace, str) or _namespace.match(namespace) is None:
            raise ValueError("handler for '%s' has an invalid namespace: %r" % (family_name, namespace))

    encodings = frozenset(handler.encodings)

    return HandlerRegistration(family_name, versions, namespaces, encodings, handler)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
