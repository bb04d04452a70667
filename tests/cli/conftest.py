import functools
import logging
import sys

import click.testing
import pytest

import kapply
from kapply.cli import CLIControls, main

SCRIPT1 = """
import kapply

@kapply.register('Secret', 'v1')
class SecretHandler(kapply.BaseResourceHandler):
    async def create(self, *, namespace, body):
        print('Hello from SecretHandler!')
        return body

    async def replace(self, *, namespace, body):
        return body

    async def delete(self, *, namespace, body, propagation_policy, grace_period=None):
        return True

    async def reload(self, *, namespace, body):
        return None
"""

SCRIPT2 = """
import kapply

@kapply.register('Role', 'rbac.authorization.k8s.io/v1')
class RoleHandler(kapply.BaseResourceHandler):
    async def create(self, *, namespace, body):
        return body

    async def replace(self, *, namespace, body):
        return body

    async def delete(self, *, namespace, body, propagation_policy, grace_period=None):
        return True

    async def reload(self, *, namespace, body):
        return None
"""

CONFIGMAPS = """
apiVersion: v1
kind: ConfigMap
metadata:
  name: cm1
data:
  key: value
---
apiVersion: v1
kind: ConfigMap
metadata:
  name: cm2
  namespace: own
"""

DEPLOYMENT = """
apiVersion: apps/v1
kind: Deployment
metadata:
  name: dep1
  namespace: ns
spec:
  replicas: 1
"""

SECRET = """
apiVersion: v1
kind: Secret
metadata:
  name: secret1
"""

ROLE = """
apiVersion: rbac.authorization.k8s.io/v1
kind: Role
metadata:
  name: role1
"""


@pytest.fixture(autouse=True)
def srcdir(tmpdir):
    tmpdir.join('handler1.py').write(SCRIPT1)
    tmpdir.join('handler2.py').write(SCRIPT2)
    tmpdir.join('configmaps.yaml').write(CONFIGMAPS)
    tmpdir.join('deployment.yaml').write(DEPLOYMENT)
    tmpdir.join('secret.yaml').write(SECRET)
    tmpdir.join('role.yaml').write(ROLE)
    pkgdir = tmpdir.mkdir('package')
    pkgdir.join('__init__.py').write('')
    pkgdir.join('module_1.py').write(SCRIPT1)
    pkgdir.join('module_2.py').write(SCRIPT2)

    sys.path.insert(0, str(tmpdir))
    try:
        with tmpdir.as_cwd():
            yield tmpdir
    finally:
        sys.path.remove(str(tmpdir))


@pytest.fixture(autouse=True)
def clean_modules_cache():
    # Otherwise, the first loaded test-modules remain there forever,
    # preventing 2nd and further tests from registering their handlers.
    for key in list(sys.modules.keys()):
        if key.startswith('package') or key.startswith('__kapply_script_'):
            del sys.modules[key]


@pytest.fixture(autouse=True)
def _restored_root_logger():
    logger = logging.getLogger()
    original_level = logger.level
    original_handlers = logger.handlers[:]
    yield
    logger.handlers[:] = original_handlers
    logger.setLevel(original_level)


@pytest.fixture()
def runner():
    runner = click.testing.CliRunner()
    return runner


@pytest.fixture()
def controls(registry, settings):
    return CLIControls(registry=registry, settings=settings)


@pytest.fixture()
def invoke(runner, controls):
    return functools.partial(runner.invoke, main, obj=controls)


@pytest.fixture()
def invoke_unregistered(runner):
    return functools.partial(runner.invoke, main, obj=CLIControls())


@pytest.fixture()
def default_registry():
    return kapply.get_default_registry()
