### models/__init__.py
from .base import Base
from .user import User, UserRole
from .watchlist import WatchlistItem
from .feedback import Feedback
