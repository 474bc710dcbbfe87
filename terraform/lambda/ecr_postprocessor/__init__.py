from .handler import EventHandler, ProcessingFailed, build_handler, lambda_handler

__all__ = ["EventHandler", "ProcessingFailed", "build_handler", "lambda_handler"]
