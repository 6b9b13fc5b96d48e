from lark_assist.reliability.timeouts import enforce_timeout

__all__ = ["enforce_timeout"]
