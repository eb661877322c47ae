""" Runtime configuration for a transaction processor. Every value that is
    specific to a deployment, such as the validator endpoint, timeouts, or
    the batching limit for state requests, lives here rather than being
    hard-coded in the components that use it.
"""

import os

from . import json


# Numeric defaults for the timeouts are the ones used by the reference
# validator tooling; the batching limit has no safe universal value, and
# is left disabled unless a deployment sets it.

defaults = dict()
defaults['endpoint'] = 'tcp://localhost:4004'
defaults['max_workers'] = 8
defaults['max_occupancy'] = 10
defaults['request_timeout'] = 300.0
defaults['register_timeout'] = 300.0
defaults['max_batch'] = None
defaults['reconnect'] = True
defaults['retry_delay'] = 0.1
defaults['max_retry_delay'] = 3.0
defaults['poll_interval'] = 0.1

converters = dict()
converters['endpoint'] = str
converters['max_workers'] = int
converters['max_occupancy'] = int
converters['request_timeout'] = float
converters['register_timeout'] = float
converters['max_batch'] = int
converters['reconnect'] = bool
converters['retry_delay'] = float
converters['max_retry_delay'] = float
converters['poll_interval'] = float

environment_prefix = 'TXPROC_'


class Configuration:
    """ A convenience class to represent processor configuration. Values are
        accessible as attributes, or by name via item access. Any keyword
        arguments override the defaults; subsequent calls to :func:`load` or
        :func:`update_from_environment` override them again.
    """

    def __init__(self, **kwargs):

        self._values = dict(defaults)
        self.update(kwargs)


    def __getattr__(self, name):

        # __getattr__ is only invoked when normal attribute lookup fails,
        # which is always the case for the configuration values themselves.

        try:
            return self.__dict__['_values'][name]
        except KeyError:
            raise AttributeError(name)


    def __getitem__(self, name):
        return self._values[name]


    def __setitem__(self, name, value):
        self.update({name: value})


    def __repr__(self):
        return 'config.Configuration(' + repr(self._values) + ')'


    def update(self, values):
        """ Apply the *values* dictionary, checking each key and converting
            each value to the expected type. Unknown keys raise a
            :class:`KeyError`; values that cannot be converted raise a
            :class:`ValueError`.
        """

        converted = dict()

        for name,value in values.items():
            try:
                converter = converters[name]
            except KeyError:
                raise KeyError('unknown configuration value: ' + repr(name))

            converted[name] = _convert(name, converter, value)

        self._values.update(converted)


    def load(self, filename):
        """ Update the configuration from a JSON file containing a single
            object of name/value pairs.
        """

        with open(filename, 'rb') as contents:
            loaded = json.loads(contents.read())

        if not isinstance(loaded, dict):
            raise ValueError('configuration file must contain a JSON object: ' + filename)

        self.update(loaded)
        return self


    def update_from_environment(self, environ=None):
        """ Apply any TXPROC_<NAME> environment variables, for example
            TXPROC_ENDPOINT or TXPROC_MAX_WORKERS.
        """

        if environ is None:
            environ = os.environ

        values = dict()

        for name in converters.keys():
            variable = environment_prefix + name.upper()

            try:
                raw = environ[variable]
            except KeyError:
                continue

            if converters[name] is bool:
                raw = _parse_bool(name, raw)

            values[name] = raw

        self.update(values)
        return self


# end of class Configuration



def _convert(name, converter, value):

    if value is None:
        if defaults[name] is None:
            return None
        raise ValueError("configuration value '%s' cannot be None" % (name))

    if converter is bool and not isinstance(value, bool):
        raise ValueError("configuration value '%s' must be a boolean: %r" % (name, value))

    try:
        value = converter(value)
    except (TypeError, ValueError):
        raise ValueError("configuration value '%s' is invalid: %r" % (name, value))

    if converter in (int, float) and value <= 0:
        raise ValueError("configuration value '%s' must be positive: %r" % (name, value))

    return value


def _parse_bool(name, raw):

    lowered = raw.strip().lower()

    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False

    raise ValueError("configuration value '%s' must be a boolean: %r" % (name, raw))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
