from .server import LLM_FAILURE_MESSAGE, create_app

__all__ = [
    "LLM_FAILURE_MESSAGE",
    "create_app",
]
