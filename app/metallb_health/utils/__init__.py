from metallb_health.utils.logging import error_fields, get_logger, setup_logging

__all__ = ["error_fields", "get_logger", "setup_logging"]
