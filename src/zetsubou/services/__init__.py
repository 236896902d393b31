from zetsubou.services.account import AccountService
from zetsubou.services.base import BaseService
from zetsubou.services.chat import ChatService
from zetsubou.services.graphql import GraphQLService
from zetsubou.services.jobs import JobsService
from zetsubou.services.nft import NFTService
from zetsubou.services.tools import ToolsService
from zetsubou.services.vfs import VFSService
from zetsubou.services.webhooks import WebhooksService

__all__ = [
    "AccountService",
    "BaseService",
    "ChatService",
    "GraphQLService",
    "JobsService",
    "NFTService",
    "ToolsService",
    "VFSService",
    "WebhooksService",
]
