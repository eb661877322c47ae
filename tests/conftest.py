import pytest
import threading

import txproc

from mockvalidator import MockValidator


@pytest.fixture
def validator():
    return MockValidator()


@pytest.fixture
def connection(validator):
    """ A started :class:`txproc.transport.Connection` over a memory
        transport. Inbound requests that are not replies are collected in
        the *inbound* list attached to the connection.
    """

    inbound = list()

    connection = txproc.transport.Connection(validator.transport(), timeout=2)
    connection.poll_interval = 0.01
    connection.inbound = inbound
    connection.start(inbound.append)

    yield connection

    connection.close()


@pytest.fixture
def run_processor(validator):
    """ Return a function that starts a :class:`txproc.TransactionProcessor`
        in a background thread, with the given handlers and configuration
        overrides, talking to the mock validator. Any exception raised by
        start() is collected in the processor's *errors* list.
    """

    started = list()

    def run(*handlers, **overrides):

        settings = dict()
        settings['poll_interval'] = 0.01
        settings['retry_delay'] = 0.01
        settings['max_retry_delay'] = 0.04
        settings['request_timeout'] = 2
        settings['register_timeout'] = 2
        settings.update(overrides)

        config = txproc.Configuration(**settings)
        processor = txproc.TransactionProcessor(config=config, transport_factory=validator.transport)

        for handler in handlers:
            processor.add_handler(handler)

        processor.errors = list()

        def main():
            try:
                processor.start()
            except Exception as e:
                processor.errors.append(e)

        processor.thread = threading.Thread(target=main, daemon=True)
        processor.thread.start()

        started.append(processor)
        return processor

    yield run

    for processor in started:
        processor.stop()
        processor.thread.join(5)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
