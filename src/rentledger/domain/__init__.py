"""Domain layer for rentledger application."""

_SERVICES = {
    "DistributionService": "rentledger.domain.distribution",
    "ImportService": "rentledger.domain.import_service",
    "PropertyService": "rentledger.domain.property",
    "TransactionService": "rentledger.domain.transaction",
}


# Services import the database layer, which imports domain.entities; load them lazily
def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = list(_SERVICES)
