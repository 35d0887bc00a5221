from consentry.handlers.meta.status import status

__all__ = ["status"]
