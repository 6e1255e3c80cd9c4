# stockroom/models/auth/__init__.py
from .user import User
