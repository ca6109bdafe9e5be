from .short_code_strategies import ShortCodeStrategy, RandomShortCodeStrategy
from .url_service import URLService

__all__ = ["ShortCodeStrategy", "RandomShortCodeStrategy", "URLService"]
