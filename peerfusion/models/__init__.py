"""
ORM models. Importing this package registers every table on Base.metadata.
"""
from peerfusion.models.user import User
from peerfusion.models.message import Message
from peerfusion.models.conversation import Conversation
from peerfusion.models.project import Project
