from .user import User
from .client import Client
from .publication import Publication
from .media import Media
from .comment import Comment
