import json
import logging.handlers

import pytest

from kapply._cogs.structs.bodies import Body
from kapply._core.actions.loggers import ObjectJsonFormatter, ObjectLogger, \
                                         ObjectPrefixingJsonFormatter, \
                                         ObjectPrefixingTextFormatter, ObjectTextFormatter


@pytest.fixture()
def ns_body():
    return Body({
        'kind': 'kind1',
        'apiVersion': 'api1/v1',
        'metadata': {'uid': 'uid1', 'name': 'name1', 'namespace': 'namespace1'},
    })


@pytest.fixture()
def cluster_body():
    return Body({
        'kind': 'kind1',
        'apiVersion': 'api1/v1',
        'metadata': {'name': 'name1'},
    })


def _record(body):
    handler = logging.handlers.BufferingHandler(capacity=100)
    logger = ObjectLogger(body=body)
    logger.logger.addHandler(handler)
    try:
        logger.info("hello")
    finally:
        logger.logger.removeHandler(handler)
    return handler.buffer[0]


@pytest.fixture()
def ns_record(ns_body):
    return _record(ns_body)


@pytest.fixture()
def cluster_record(cluster_body):
    return _record(cluster_body)


def test_prefixing_text_formatter_adds_prefixes_when_namespaced(ns_record):
    formatter = ObjectPrefixingTextFormatter()
    formatted = formatter.format(ns_record)
    assert formatted == '[namespace1/name1] hello'


def test_prefixing_text_formatter_adds_prefixes_when_cluster(cluster_record):
    formatter = ObjectPrefixingTextFormatter()
    formatted = formatter.format(cluster_record)
    assert formatted == '[name1] hello'


def test_prefixing_json_formatter_adds_prefixes_when_namespaced(ns_record):
    formatter = ObjectPrefixingJsonFormatter()
    formatted = formatter.format(ns_record)
    decoded = json.loads(formatted)
    assert decoded['message'] == '[namespace1/name1] hello'


def test_regular_text_formatter_omits_prefixes(ns_record):
    formatter = ObjectTextFormatter()
    formatted = formatter.format(ns_record)
    assert formatted == 'hello'


def test_regular_json_formatter_omits_prefixes(ns_record):
    formatter = ObjectJsonFormatter()
    formatted = formatter.format(ns_record)
    decoded = json.loads(formatted)
    assert decoded['message'] == 'hello'


@pytest.mark.parametrize('cls', [ObjectJsonFormatter, ObjectPrefixingJsonFormatter])
@pytest.mark.parametrize('levelno, expected_severity', [
    (logging.DEBUG, 'debug'),
    (logging.DEBUG + 1, 'info'),
    (logging.INFO, 'info'),
    (logging.WARNING, 'warn'),
    (logging.ERROR, 'error'),
    (logging.FATAL, 'fatal'),
    (999, 'fatal'),
])
def test_json_formatters_add_severity(ns_record, cls, levelno, expected_severity):
    ns_record.levelno = levelno
    ns_record.levelname = 'must-be-irrelevant'
    formatter = cls()
    formatted = formatter.format(ns_record)
    decoded = json.loads(formatted)
    assert decoded['severity'] == expected_severity


@pytest.mark.parametrize('cls', [ObjectJsonFormatter, ObjectPrefixingJsonFormatter])
@pytest.mark.parametrize('refkey, expected_key', [(None, 'object'), ('k8s-obj', 'k8s-obj')])
def test_json_formatters_add_refkey(ns_record, cls, refkey, expected_key):
    formatter = cls(refkey=refkey)
    formatted = formatter.format(ns_record)
    decoded = json.loads(formatted)
    assert decoded[expected_key] == {
        'uid': 'uid1',
        'name': 'name1',
        'namespace': 'namespace1',
        'apiVersion': 'api1/v1',
        'kind': 'kind1',
    }
    assert 'k8s_ref' not in decoded


def test_object_logger_merges_the_extras(ns_body):
    handler = logging.handlers.BufferingHandler(capacity=100)
    logger = ObjectLogger(body=ns_body)
    logger.logger.addHandler(handler)
    try:
        logger.info("hello", extra={'custom': 'value'})
    finally:
        logger.logger.removeHandler(handler)
    record = handler.buffer[0]
    assert record.custom == 'value'
    assert record.k8s_ref['name'] == 'name1'
