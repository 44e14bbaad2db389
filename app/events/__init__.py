"""Package des handlers d'événements Redis.

L'import de ce package charge tous ses sous-modules, ce qui enregistre
leurs handlers via @subscribe avant le démarrage de la consommation.
"""

import importlib
import pkgutil

for _module in pkgutil.iter_modules(__path__):
    importlib.import_module(f"{__name__}.{_module.name}")
