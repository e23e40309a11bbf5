# homeservice_admin/handlers/base_handler.py
from typing import Optional, Tuple
from telegram import InlineKeyboardMarkup, Update
from telegram.error import BadRequest
from telegram.ext import ContextTypes
from ..config import Config
from ..constants import CATALOG_TREE_KEY, COORDINATOR_KEY
from ..models import Language
from ..services import CatalogRepository, CatalogTree, MutationCoordinator
from ..utils.keyboards import Keyboards
from ..utils.messages import Messages

class BaseHandler:
    """Base class for the admin handlers"""
    def __init__(self, repository: CatalogRepository):
        self.repository = repository
        self.keyboards = Keyboards()
        self.messages = Messages()

    async def is_admin(self, user_id: int) -> bool:
        """Check admin access"""
        return user_id in Config.ADMIN_IDS

    async def admin_query(self, update: Update) -> bool:
        """Answer a pending button press and check admin access"""
        if update.callback_query:
            await update.callback_query.answer()
        if not await self.is_admin(update.effective_user.id):
            await self.reply(update, self.messages.ACCESS_DENIED)
            return False
        return True

    @staticmethod
    async def reply(update: Update, text: str, reply_markup: Optional[InlineKeyboardMarkup] = None):
        """Edit the message behind a button press, or answer a typed message"""
        if update.callback_query:
            try:
                await update.callback_query.edit_message_text(text, reply_markup=reply_markup)
            except BadRequest as e:
                # pressing refresh on an unchanged tree
                if "not modified" not in str(e).lower():
                    raise
        else:
            await update.effective_message.reply_text(text, reply_markup=reply_markup)

    def tree_for(self, context: ContextTypes.DEFAULT_TYPE) -> CatalogTree:
        """The admin's catalog tree, created on first use"""
        tree = context.user_data.get(CATALOG_TREE_KEY)
        if tree is None:
            tree = CatalogTree(self.repository, Language(Config.DEFAULT_LANGUAGE))
            context.user_data[CATALOG_TREE_KEY] = tree
        return tree

    def coordinator_for(self, context: ContextTypes.DEFAULT_TYPE) -> MutationCoordinator:
        coordinator = context.user_data.get(COORDINATOR_KEY)
        if coordinator is None:
            coordinator = MutationCoordinator(self.repository, self.tree_for(context))
            context.user_data[COORDINATOR_KEY] = coordinator
        return coordinator

    @staticmethod
    async def download_attachment(update: Update, context: ContextTypes.DEFAULT_TYPE) -> Tuple[bytes, Optional[str]]:
        """Content and file name of the photo or document in the message"""
        message = update.effective_message
        if message.photo:
            file_id, filename = message.photo[-1].file_id, None
        elif message.document:
            file_id, filename = message.document.file_id, message.document.file_name
        else:
            raise ValueError("The message has no file")

        file = await context.bot.get_file(file_id)
        content = await file.download_as_bytearray()
        return bytes(content), filename
