"""
Module-, file-, and manifest-loading for the command-line usage.

The handlers of the resource kinds are usually registered with a decorator
in the modules of the transport libraries or of the applications. So these
files/modules should be loaded first, thus executing the decorators.

The files/modules to be loaded are usually specified on the command-line.
Currently, two loading modes are supported, both are equivalent to Python CLI:

* Plain files files (`kapply apply handlers.py -f ...`).
* Importable modules (`kapply apply -m pkg.mod -f ...`).

Multiple files/modules can be specified. They will be loaded in the order.
"""
import importlib
import importlib.abc
import importlib.util
import os.path
import sys
from typing import Iterable, List, cast

MANIFEST_EXTENSIONS = {'.yaml', '.yml', '.json'}


def preload(
        paths: Iterable[str],
        modules: Iterable[str],
) -> None:
    """
    Ensure the handlers are registered by loading/importing the files/modules.
    """

    for idx, path in enumerate(paths):
        sys.path.insert(0, os.path.abspath(os.path.dirname(path)))
        name = f'__kapply_script_{idx}__{path}'  # same pseudo-name as '__main__'
        spec = importlib.util.spec_from_file_location(name, path)
        module = importlib.util.module_from_spec(spec) if spec is not None else None
        loader = cast(importlib.abc.Loader, spec.loader) if spec is not None else None
        if module is not None and loader is not None:
            sys.modules[name] = module
            loader.exec_module(module)
        else:
            raise ImportError(f"Failed loading {path}: no module or loader.")

    for name in modules:
        importlib.import_module(name)


def read_manifests(
        filenames: Iterable[str],
) -> List[str]:
    """
    Read the manifests' texts from the files, or from stdin for ``-``.

    The directories are read file-by-file for ``*.yaml``, ``*.yml``, ``*.json``,
    in the alphabetical order, non-recursively.
    """
    texts: List[str] = []
    for filename in filenames:
        if filename == '-':
            texts.append(sys.stdin.read())
        elif os.path.isdir(filename):
            for entry in sorted(os.listdir(filename)):
                if os.path.splitext(entry)[1] in MANIFEST_EXTENSIONS:
                    with open(os.path.join(filename, entry), encoding='utf-8') as f:
                        texts.append(f.read())
        else:
            with open(filename, encoding='utf-8') as f:
                texts.append(f.read())
    return texts
