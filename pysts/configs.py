import importlib
import pkgutil

import pysts.config


def load_config(name : str):
    name = name.split('/')[-1].split('.')[0]
    modname = 'pysts.config.' + name
    return importlib.import_module(modname)


def list_configs():
    return sorted(m.name for m in pkgutil.iter_modules(pysts.config.__path__))
