from app.utils.sse import format_error_sse, format_sse

__all__ = ["format_error_sse", "format_sse"]
